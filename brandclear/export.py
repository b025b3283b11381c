import csv
import io
from typing import Iterable, List

from .schemas import ValidatedName

CSV_HEADERS = [
    "Name",
    "Score",
    "Grade",
    "Distinctiveness",
    "Domain Available",
    "Domain Price",
    "Rationale",
    "Trademark Conflicts",
    "Risk Level",
    "Report",
]


def rank_validated_names(names: Iterable[ValidatedName]) -> List[ValidatedName]:
    """Highest overall score first; ties keep their original order."""
    return sorted(names, key=lambda n: n.validation.trademarkability_score.overall, reverse=True)


def csv_row(name: ValidatedName) -> List[str]:
    validation = name.validation
    score = validation.trademarkability_score
    return [
        name.generated.name,
        str(score.overall),
        score.grade,
        name.generated.distinctiveness_category,
        "Yes" if validation.domain.available else "No",
        validation.domain.price or "N/A",
        name.generated.rationale,
        str(len(validation.trademark.conflicts)),
        validation.trademark.risk_level,
        score.report,
    ]


def generate_csv(names: Iterable[ValidatedName]) -> str:
    # QUOTE_MINIMAL quotes any field holding a comma, quote or newline and doubles inner quotes
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for name in names:
        writer.writerow(csv_row(name))
    return buffer.getvalue()
