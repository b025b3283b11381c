from brandclear.export import CSV_HEADERS, generate_csv, rank_validated_names
from brandclear.schemas import (
    DomainResult,
    ScoreBreakdown,
    TrademarkabilityScore,
    TrademarkResult,
    ValidatedName,
    ValidationResult,
    WebSearchResult,
)

from conftest import make_name


def validated(name, overall=90, grade="A", rationale="Coined word", available=True, price="$12.00", report="Solid."):
    breakdown = ScoreBreakdown(distinctiveness=95, conflict_risk=100, registrability=95, web_search=100, trademark=100)
    return ValidatedName(
        generated=make_name(name, rationale=rationale),
        validation=ValidationResult(
            name=name,
            web_search=WebSearchResult(passed=True),
            domain=DomainResult(available=available, domain=f"{name.lower()}.com", price=price, source="rdap"),
            trademark=TrademarkResult(passed=True),
            trademarkability_score=TrademarkabilityScore(overall=overall, breakdown=breakdown, grade=grade, report=report),
        ),
    )


class TestGenerateCsv:
    def test_header_and_row(self):
        lines = generate_csv([validated("Zenvox")]).split("\n")
        assert lines[0] == ",".join(CSV_HEADERS)
        assert lines[1] == "Zenvox,90,A,fanciful,Yes,$12.00,Coined word,0,low,Solid."

    def test_missing_price_and_unavailable_domain(self):
        row = generate_csv([validated("Zenvox", available=False, price=None)]).split("\n")[1]
        assert ",No,N/A," in row

    def test_quotes_and_commas_escaped(self):
        csv_text = generate_csv([validated("Zenvox", rationale='He said, "great"')])
        assert '"He said, ""great"""' in csv_text

    def test_newlines_quoted(self):
        csv_text = generate_csv([validated("Zenvox", report="Line one\nLine two")])
        assert '"Line one\nLine two"' in csv_text

    def test_plain_fields_unquoted(self):
        csv_text = generate_csv([validated("Zenvox")])
        assert '"' not in csv_text

    def test_empty(self):
        assert generate_csv([]) == ",".join(CSV_HEADERS) + "\n"


def test_rank_by_overall_descending():
    names = [validated("Low", overall=60), validated("High", overall=95), validated("Mid", overall=80)]
    assert [n.generated.name for n in rank_validated_names(names)] == ["High", "Mid", "Low"]
