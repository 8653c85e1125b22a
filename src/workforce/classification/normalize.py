"""Department name canonicalization.

Views label the same department in different ways: legacy shorthand
(``FGWH``), run-together words (``RawMaterial``) or a multi-line caption
such as ``"Plant Production\\n(Outsole degreasing)"``. Every rule lookup
goes through :func:`normalize_department` first.
"""

from __future__ import annotations

DEPARTMENT_ALIASES: dict[str, str] = {
    "RawMaterial": "Raw Material",
    "SubMaterial": "Sub Material",
    "BottomMarket": "Bottom Market",
    "FGWH": "FG WH",
    "ACC": "ACC Market",
    "PL": "P&L Market",
}

KNOWN_DEPARTMENTS: frozenset[str] = frozenset(
    {
        "Line",
        "Admin",
        "Small Tooling",
        "Raw Material",
        "Sub Material",
        "ACC Market",
        "P&L Market",
        "Bottom Market",
        "FG WH",
        "Quality",
        "CE",
        "TPM",
        "CQM",
        "Lean",
        "Security",
        "RMCC",
        "No-sew",
        "HF Welding",
        "Separated",
        "Plant Production",
    }
)


def normalize_department(raw: str | None) -> str | None:
    """Return the canonical department name for *raw*.

    Only the first line of a multi-line label is kept. Empty or ``None``
    input is returned unchanged.
    """
    if not raw:
        return raw
    first_line = raw.splitlines()[0].strip()
    return DEPARTMENT_ALIASES.get(first_line, first_line)


def is_known_department(name: str | None) -> bool:
    """Whether *name* (after normalization) is a recognized department."""
    normalized = normalize_department(name)
    return bool(normalized) and normalized in KNOWN_DEPARTMENTS
