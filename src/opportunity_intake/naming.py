"""Opportunity name generation: Organization - Principal - Context - Month Year."""

import re
from datetime import date as date_type
from typing import Any, Callable, Iterable, Optional

from opportunity_intake.models.draft import OpportunityContext
from opportunity_intake.models.results import OpportunityNamePreview

SEPARATOR = " - "
PLACEHOLDER_NAME = "New Opportunity"

ORGANIZATION_TOKEN = "{{organization}}"
PRINCIPAL_TOKEN = "{{principal}}"
DATE_TOKEN = "{{month}} {{year}}"

# English month names, independent of host locale
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_DISALLOWED_CHARS = re.compile(r"[^\w\s&.,\-/()+'’!]")


def clean_segment(text: Any) -> str:
    """
    Collapse whitespace and drop symbols that do not belong in a name.
    Letters in any script and name punctuation (apostrophes, hyphens, "!")
    are kept: "Acme™  Foods*" -> "Acme Foods".
    """
    if text is None:
        return ""
    cleaned = _DISALLOWED_CHARS.sub("", str(text))
    return re.sub(r"\s+", " ", cleaned).strip()


def context_label(context: Any, custom_context: Any = "") -> str:
    """
    Human label for a context; custom text when context is Custom;
    empty when unset. Unrecognised values are used as free text.
    """
    if context is None or (isinstance(context, str) and not context.strip()):
        return ""
    try:
        ctx = OpportunityContext.parse(context)
    except ValueError:
        return clean_segment(context)
    if ctx is OpportunityContext.CUSTOM:
        return clean_segment(custom_context)
    return ctx.label


def month_year(when: Optional[date_type] = None) -> str:
    """'March 2025' for the given date, or for today when omitted."""
    when = when or date_type.today()
    return f"{MONTH_NAMES[when.month - 1]} {when.year}"


def _compose(segments: list[str], date_part: str) -> str:
    present = [s for s in segments if s]
    if not present:
        present = [PLACEHOLDER_NAME]
    return SEPARATOR.join(present + [date_part])


def generate_name(
    organization_name: Any,
    principal_name: Any,
    context: Any = None,
    custom_context: Any = "",
    *,
    date: Optional[date_type] = None,
) -> str:
    """
    Build the display name. Empty segments are omitted; the date segment is
    always present, so the result is never empty. Never raises.
    """
    return _compose(
        [
            clean_segment(organization_name),
            clean_segment(principal_name),
            context_label(context, custom_context),
        ],
        month_year(date),
    )


def generate_template(
    organization_name: Any,
    principal_name: Any,
    context: Any = None,
    custom_context: Any = "",
) -> str:
    """Pattern mirroring generate_name, with placeholders for the variable parts."""
    return _compose(
        [
            ORGANIZATION_TOKEN if clean_segment(organization_name) else "",
            PRINCIPAL_TOKEN if clean_segment(principal_name) else "",
            context_label(context, custom_context),
        ],
        DATE_TOKEN,
    )


def _principal_fields(principal: Any) -> tuple[str, str]:
    """(id, label) from a Principal model or an {id, name} mapping."""
    if isinstance(principal, dict):
        pid = str(principal.get("id") or "")
        name = principal.get("name") or ""
    else:
        pid = str(getattr(principal, "id", "") or "")
        name = getattr(principal, "name", "") or ""
    return pid, (clean_segment(name) or pid)


def _raw_name(principal: Any) -> str:
    """Principal name with whitespace collapsed but nothing else removed."""
    if isinstance(principal, dict):
        name = principal.get("name")
    else:
        name = getattr(principal, "name", None)
    return re.sub(r"\s+", " ", str(name or "")).strip()


def generate_batch_previews(
    organization_name: Any,
    principals: Iterable[Any],
    context: Any = None,
    custom_context: Any = "",
    *,
    date: Optional[date_type] = None,
) -> list[OpportunityNamePreview]:
    """
    One preview per principal, in the given (selection) order.
    Unresolved principal names fall back to the principal ID. Distinct
    principal names that clean to the same label keep their raw text.
    """
    when = date or date_type.today()
    organization = clean_segment(organization_name)
    context_part = context_label(context, custom_context)
    previews: list[OpportunityNamePreview] = []
    principals = list(principals)
    raw_by_label: dict[str, set[str]] = {}
    for principal in principals:
        raw = _raw_name(principal)
        if raw:
            raw_by_label.setdefault(_principal_fields(principal)[1], set()).add(raw)
    for principal in principals:
        pid, label = _principal_fields(principal)
        if len(raw_by_label.get(label, ())) > 1:
            label = _raw_name(principal)
        previews.append(
            OpportunityNamePreview(
                principal_id=pid,
                principal_name=label,
                generated_name=_compose([organization, label, context_part], month_year(when)),
                name_template=_compose(
                    [
                        ORGANIZATION_TOKEN if organization else "",
                        PRINCIPAL_TOKEN if label else "",
                        context_part,
                    ],
                    DATE_TOKEN,
                ),
            )
        )
    return previews


def _template_pattern(template: str) -> tuple[re.Pattern, str]:
    """Regex for names built from template, plus the literal context label ('' if none)."""
    months = "|".join(MONTH_NAMES)
    tokens = (ORGANIZATION_TOKEN, PRINCIPAL_TOKEN, DATE_TOKEN)
    # Adjacent literal parts form one label, e.g. a custom context "Q3 - Launch"
    segments: list[str] = []
    for part in (p.strip() for p in template.split(SEPARATOR)):
        if part not in tokens and segments and segments[-1] not in tokens:
            segments[-1] += SEPARATOR + part
        else:
            segments.append(part)

    parts: list[str] = []
    context = ""
    for part in segments:
        if part == ORGANIZATION_TOKEN:
            parts.append(r"(?P<organization>.+?)")
        elif part == PRINCIPAL_TOKEN:
            parts.append(r"(?P<principal>.+?)")
        elif part == DATE_TOKEN:
            parts.append(rf"(?P<month>{months})\s+(?P<year>\d{{4}})")
        else:
            if part != PLACEHOLDER_NAME:
                context = part
            parts.append(r"\s+".join(re.escape(w) for w in part.split()))
    return re.compile(r"^\s*" + r"\s+-\s+".join(parts) + r"\s*$"), context


def parse_auto_generated_name(name: Optional[str], template: Optional[str]) -> Optional[dict[str, str]]:
    """
    Split a generated name into organization, principal, context, month, year, date.
    Returns None when the name does not follow the template.
    """
    if not name or not template:
        return None
    pattern, context = _template_pattern(template)
    match = pattern.match(name)
    if not match:
        return None
    groups = match.groupdict()
    month, year = groups["month"], groups["year"]
    return {
        "organization": (groups.get("organization") or "").strip(),
        "principal": (groups.get("principal") or "").strip(),
        "context": context,
        "month": month,
        "year": year,
        "date": f"{month} {year}",
    }


def is_auto_generated_name(name: Optional[str], template: Optional[str]) -> bool:
    """True if name still matches its generation template (not user-edited)."""
    return parse_auto_generated_name(name, template) is not None


def refresh_auto_generated_name(
    current_name: Optional[str],
    template: Optional[str],
    *,
    organization_name: Optional[str] = None,
    principal_name: Optional[str] = None,
    context: Any = None,
    custom_context: Optional[str] = None,
    date: Optional[date_type] = None,
) -> str:
    """
    Rebuild a generated name applying only the given updates.
    Falls back to a fresh generate_name when current_name cannot be parsed.
    """
    parsed = parse_auto_generated_name(current_name, template)
    if parsed is None:
        return generate_name(
            organization_name or "",
            principal_name or "",
            context,
            custom_context or "",
            date=date,
        )
    if context is None and custom_context is None:
        label = parsed["context"]
    else:
        label = context_label(context, custom_context or "")
    return _compose(
        [
            clean_segment(organization_name if organization_name is not None else parsed["organization"]),
            clean_segment(principal_name if principal_name is not None else parsed["principal"]),
            label,
        ],
        month_year(date) if date else parsed["date"],
    )


def generate_unique_name(
    organization_name: Any,
    principal_name: Any,
    context: Any = None,
    custom_context: Any = "",
    *,
    is_taken: Callable[[str], bool],
    date: Optional[date_type] = None,
    max_attempts: int = 10,
) -> Optional[str]:
    """
    generate_name, suffixed " (2)", " (3)", ... until is_taken returns False.
    None when max_attempts candidates are all taken.
    """
    base = generate_name(organization_name, principal_name, context, custom_context, date=date)
    for attempt in range(1, max_attempts + 1):
        candidate = base if attempt == 1 else f"{base} ({attempt})"
        if not is_taken(candidate):
            return candidate
    return None
