"""
Unit tests for normalization modules.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from accredited_tres.normalize.address_normalizer import AddressNormalizer
from accredited_tres.normalize.records import NormalizationResult, ProviderRecord
from accredited_tres.normalize.row_normalizer import RowNormalizer
from accredited_tres.normalize.sheet_normalizer import SheetNormalizer, normalize, normalize_all


SAMPLE_SHEET = """DEPARTMENT OF TOURISM - CARAGA REGION,,,,,,,,
"ACCREDITED TOURISM-RELATED ESTABLISHMENTS As of August 31, 2025.",,,,,,,,
,,,,,,,,
No.,Type of Enterprise,Enterprise Name,Address,Contact No.,Email Address,Accreditation No.,Validity,Status
,BUTUAN CITY,,,,,,,
1,Hotel,Almont Inland Resort,"J.C. Aquino Ave., Butuan City",085-342-7414,almont@example.com,TRE-001,2026-01-01,New
2,Restaurant,Joe's Diner,"123 Main St, Butuan City",555-1234,,ACC-001,2026-01-01,Active
,,,,,,,,
,CABADBARAN CITY,,,,,,,
Travel Agency,Caraga Tours,"Purok 2, Cabadbaran City",555-0000,,TRE-003,2025-12-31,Renewal
3,Resort,,"Somewhere, Cabadbaran City",,,,,
"""


class TestAddressNormalizer:
    """Test cases for address normalization."""

    def setup_method(self):
        """Setup test fixtures."""
        self.normalizer = AddressNormalizer()

    def test_normalize_address(self):
        """Test whitespace cleanup."""
        assert self.normalizer.normalize_address("  123  Main St,\nButuan City ") == "123 Main St, Butuan City"
        assert self.normalizer.normalize_address("") == ""
        assert self.normalizer.normalize_address(None) == ""

    def test_extract_locality(self):
        """Test trailing locality extraction."""
        assert self.normalizer.extract_locality("123 Main St, Butuan City") == "Butuan City"
        assert self.normalizer.extract_locality("Purok 2, Cabadbaran City, ,") == "Cabadbaran City"
        assert self.normalizer.extract_locality("No commas here") == "No commas here"
        assert self.normalizer.extract_locality("") == ""
        assert self.normalizer.extract_locality(" , , ") == ""


class TestRowNormalizer:
    """Test cases for row classification and field extraction."""

    def setup_method(self):
        """Setup test fixtures."""
        self.normalizer = RowNormalizer({"canonical_width": 9, "id_prefix": "provider"})

    def test_location_marker(self):
        """Test single non-numeric cell rows are location markers."""
        assert self.normalizer.location_marker(["BUTUAN CITY"]) == "BUTUAN CITY"
        assert self.normalizer.location_marker(["", " Nasipit ", "", ""]) == "Nasipit"
        assert self.normalizer.location_marker(["", "", "", "SURIGAO CITY"]) == "SURIGAO CITY"

    def test_not_location_marker(self):
        """Test rows that are not location markers."""
        assert self.normalizer.location_marker(["5"]) is None
        assert self.normalizer.location_marker(["", "12.5", ""]) is None
        assert self.normalizer.location_marker(["1", "Hotel"]) is None
        assert self.normalizer.location_marker(["", "", ""]) is None

    def test_indexed_row(self):
        """Test a full row with the leading No. column."""
        row = ["1", "Restaurant", "Joe's Diner", "123 Main St, Butuan City",
               "555-1234", "", "ACC-001", "2026-01-01", "Active"]
        records = self.normalizer.normalize_rows([(0, ["BUTUAN CITY"]), (1, row)])

        assert len(records) == 1
        record = records[0]
        assert record.location == "BUTUAN CITY"
        assert record.name == "Joe's Diner"
        assert record.enterprise_type == "Restaurant"
        assert record.address == "123 Main St, Butuan City"
        assert record.phone == "555-1234"
        assert record.email is None
        assert record.accreditation_no == "ACC-001"
        assert record.validity == "2026-01-01"
        assert record.status == "Active"

    def test_shifted_short_row(self):
        """Test a row without the No. column and with trailing columns missing."""
        fields = self.normalizer.extract_fields(
            ["Restaurant", "Joe's Diner", "123 Main St, Butuan City", "555-1234"]
        )
        assert fields["enterprise_type"] == "Restaurant"
        assert fields["name"] == "Joe's Diner"
        assert fields["address"] == "123 Main St, Butuan City"
        assert fields["phone"] == "555-1234"
        assert fields["email"] == ""
        assert fields["accreditation_no"] == ""
        assert fields["validity"] == ""
        assert fields["status"] == ""

    def test_shift_decided_per_row(self):
        """Test that indexed and unindexed rows can be mixed in one sheet."""
        rows = [
            (0, ["1", "Hotel", "First Inn", "Addr, Bayugan"]),
            (1, ["Resort", "Second Resort", "Addr, Bayugan"]),
            (2, ["3", "Restaurant", "Third Grill", "Addr, Bayugan"]),
        ]
        records = self.normalizer.normalize_rows(rows)
        assert [r.name for r in records] == ["First Inn", "Second Resort", "Third Grill"]
        assert [r.enterprise_type for r in records] == ["Hotel", "Resort", "Restaurant"]

    def test_numeric_first_cell_is_always_read_as_index(self):
        """Test the column-shift heuristic on a numeric-looking enterprise type.

        The heuristic cannot tell a numeric first field from a "No." value, so
        the row is read as indexed and its fields land one column off.
        """
        fields = self.normalizer.extract_fields(["101", "Hotel 101", "Addr, Butuan City"])
        assert fields["enterprise_type"] == "Hotel 101"
        assert fields["name"] == "Addr, Butuan City"

    def test_row_without_name_is_dropped(self):
        """Test rows missing a name produce no record."""
        assert self.normalizer.build_record(0, ["2", "Retail", "", "Addr"], "BUTUAN CITY") is None
        assert self.normalizer.build_record(0, ["5"], "BUTUAN CITY") is None

    def test_numeric_row_does_not_change_location(self):
        """Test a lone number neither sets location nor yields a record."""
        rows = [
            (0, ["NASIPIT"]),
            (1, ["7"]),
            (2, ["1", "Hotel", "Port Inn", "Addr, Nasipit"]),
        ]
        records = self.normalizer.normalize_rows(rows)
        assert len(records) == 1
        assert records[0].location == "NASIPIT"

    def test_location_persists_until_next_marker(self):
        """Test location context carries forward."""
        rows = [
            (0, ["BUTUAN CITY"]),
            (1, ["1", "Hotel", "A", "x"]),
            (2, ["2", "Hotel", "B", "x"]),
            (3, ["", "SIBAGAT", ""]),
            (4, ["3", "Hotel", "C", "x"]),
        ]
        records = self.normalizer.normalize_rows(rows)
        assert [r.location for r in records] == ["BUTUAN CITY", "BUTUAN CITY", "SIBAGAT"]

    def test_location_fallback_from_address(self):
        """Test location derived from the address when no marker was seen."""
        records = self.normalizer.normalize_rows(
            [(0, ["Restaurant", "Joe's Diner", "123 Main St, Butuan City", "555-1234"])]
        )
        assert records[0].location == "Butuan City"

    def test_location_fallback_does_not_carry_forward(self):
        """Test a derived location applies to its own row only."""
        records = self.normalizer.normalize_rows([
            (0, ["1", "Hotel", "A", "Street, Bayugan"]),
            (1, ["2", "Hotel", "B", "No locality"]),
        ])
        assert records[0].location == "Bayugan"
        assert records[1].location == "No locality"

    def test_unresolved_location_is_empty(self):
        """Test a row with no marker and no address keeps an empty location."""
        records = self.normalizer.normalize_rows([(0, ["1", "Hotel", "A"])])
        assert records[0].location == ""

    def test_make_id(self):
        """Test id generation."""
        assert self.normalizer.make_id(5, "Joe's Diner") == "provider-5-joe-s-diner"
        assert self.normalizer.make_id(5, "Joe's Diner", "agusan-norte") == "provider-agusan-norte-5-joe-s-diner"
        assert self.normalizer.make_id(0, "  ÑOÑO Café  ") == "provider-0-o-o-caf"


class TestSheetNormalizer:
    """Test cases for whole-sheet normalization."""

    def setup_method(self):
        """Setup test fixtures."""
        self.normalizer = SheetNormalizer()

    def test_normalize_sample_sheet(self):
        """Test normalization of a realistic sheet."""
        result = self.normalizer.normalize(SAMPLE_SHEET, "agusan-norte")

        assert result.error is None
        assert result.degraded is False
        assert result.freshness_date == "August 31, 2025"
        assert [r.name for r in result.records] == [
            "Almont Inland Resort",
            "Joe's Diner",
            "Caraga Tours",
        ]
        assert [r.location for r in result.records] == [
            "BUTUAN CITY",
            "BUTUAN CITY",
            "CABADBARAN CITY",
        ]
        assert [r.id for r in result.records] == [
            "provider-agusan-norte-4-almont-inland-resort",
            "provider-agusan-norte-5-joe-s-diner",
            "provider-agusan-norte-7-caraga-tours",
        ]

        tours = result.records[2]
        assert tours.enterprise_type == "Travel Agency"
        assert tours.address == "Purok 2, Cabadbaran City"
        assert tours.accreditation_no == "TRE-003"
        assert tours.status == "Renewal"
        assert result.records[0].email == "almont@example.com"

    def test_ids_ignore_blank_rows(self):
        """Test that inserting blank rows does not change ids."""
        padded = SAMPLE_SHEET.replace("\n,BUTUAN CITY", "\n,,,\n\n,BUTUAN CITY")
        original = self.normalizer.normalize(SAMPLE_SHEET)
        shifted = self.normalizer.normalize(padded)
        assert [r.id for r in shifted.records] == [r.id for r in original.records]

    def test_idempotent(self):
        """Test repeated normalization yields identical output."""
        first = self.normalizer.normalize(SAMPLE_SHEET, "agusan-norte")
        second = self.normalizer.normalize(SAMPLE_SHEET, "agusan-norte")
        assert first == second

    def test_freshness_date(self):
        """Test freshness date extraction."""
        assert self.normalizer.extract_freshness_date("Listing As of August 31, 2025. Thanks") == "August 31, 2025"
        assert self.normalizer.extract_freshness_date("As of  June 1, 2024.") == "June 1, 2024"
        assert self.normalizer.extract_freshness_date("No date here") == ""
        assert self.normalizer.extract_freshness_date("") == ""

    def test_freshness_date_needs_whole_phrase(self):
        """Test words ending in "as" followed by "of" are not a date."""
        assert self.normalizer.extract_freshness_date("Bananas of Mindanao Corp.,Hotel") == ""
        assert self.normalizer.extract_freshness_date("as of June 1, 2024.") == ""

    def test_freshness_date_stays_on_one_line(self):
        """Test the date never spans a line break."""
        text = "As of August 31 2025,,\nNo.,Enterprise Name\n"
        assert self.normalizer.extract_freshness_date(text) == ""

    def test_freshness_pattern_needs_group(self):
        """Test a pattern without a capture group is rejected."""
        with pytest.raises(ValueError):
            SheetNormalizer({"normalization": {"freshness_pattern": r"As of [^.]*\."}})

    def test_missing_header_degrades(self):
        """Test the fixed preamble fallback when no header row exists."""
        text = "\n".join([
            "Title",
            "Subtitle",
            "Note one,x",
            "Note two,y",
            "1,Hotel,Fallback Inn,\"Road, Tandag\"",
        ])
        result = self.normalizer.normalize(text)
        assert result.degraded is True
        assert result.error is None
        assert [r.name for r in result.records] == ["Fallback Inn"]
        assert result.records[0].location == "Tandag"

    def test_malformed_sheet_returns_empty_result(self):
        """Test unrecoverable syntax yields a diagnostic instead of raising."""
        text = 'No.,Type,Enterprise Name\n1,Hotel,"Unclosed Inn,Addr\n'
        result = self.normalizer.normalize(text, "surigao-sur")
        assert result.records == []
        assert result.error is not None
        assert "surigao-sur" in result.error

    def test_stray_quote_keeps_other_records(self):
        """Test one badly quoted cell does not cost the rest of the sheet."""
        text = "\n".join([
            "No.,Type of Enterprise,Enterprise Name,Address",
            ",BUTUAN CITY,,",
            "1,Hotel,Almont Inland Resort,Butuan City",
            '2,Restaurant,"Joe"s Diner","123 Main St, Butuan City"',
            "3,Resort,Lakeside Inn,Butuan City",
        ])
        result = self.normalizer.normalize(text, "agusan-norte")
        assert result.error is None
        assert len(result.records) == 3
        assert result.records[0].name == "Almont Inland Resort"
        assert result.records[1].address == "123 Main St, Butuan City"
        assert result.records[2].name == "Lakeside Inn"
        assert result.records[2].id == "provider-agusan-norte-4-lakeside-inn"

    @pytest.mark.parametrize("text", ['"', ",,,", "just text", "\n\n\n", "1,2,3\n4,5,6"])
    def test_never_raises(self, text):
        """Test odd inputs produce a result rather than an exception."""
        result = self.normalizer.normalize(text)
        assert isinstance(result, NormalizationResult)
        assert isinstance(result.records, list)

    def test_header_only_sheet(self):
        """Test a sheet with a header and no data."""
        result = self.normalizer.normalize("No.,Enterprise Name,Address\n")
        assert result.records == []
        assert result.error is None

    def test_convenience_normalize(self):
        """Test module-level normalize with a config override."""
        config = {"normalization": {"id_prefix": "tre"}}
        result = normalize(SAMPLE_SHEET, config=config)
        assert result.records[0].id == "tre-4-almont-inland-resort"


class TestNormalizeAll:
    """Test cases for multi-source normalization."""

    def setup_method(self):
        """Setup test fixtures."""
        self.second_sheet = "\n".join([
            "No.,Type of Enterprise,Enterprise Name,Address",
            ",SURIGAO CITY,,",
            "1,Resort,Siargao Breeze,\"Tourism Rd, Surigao City\"",
        ])
        self.broken_sheet = 'No.,Enterprise Name\n1,"Broken'

    def test_source_order_preserved(self):
        """Test records follow source order."""
        result = normalize_all([SAMPLE_SHEET, self.second_sheet], ["agusan-norte", "surigao-norte"])
        assert [r.name for r in result.records] == [
            "Almont Inland Resort",
            "Joe's Diner",
            "Caraga Tours",
            "Siargao Breeze",
        ]
        assert result.source_count == 2
        assert result.error is None

    def test_freshness_from_first_source_only(self):
        """Test the freshness date comes from the first source."""
        result = normalize_all([self.second_sheet, SAMPLE_SHEET])
        assert result.freshness_date == ""

        result = normalize_all([SAMPLE_SHEET, "As of May 1, 2020.\n"])
        assert result.freshness_date == "August 31, 2025"

    def test_parse_failure_isolated(self):
        """Test a broken source does not affect the others."""
        result = normalize_all(
            [SAMPLE_SHEET, self.broken_sheet, self.second_sheet],
            ["agusan-norte", "agusan-sur", "surigao-norte"],
        )
        assert len(result.records) == 4
        assert result.records[-1].name == "Siargao Breeze"
        assert result.error.startswith("agusan-sur:")

    def test_ids_unique_across_sources(self):
        """Test unhinted sources get ordinal-scoped ids."""
        result = normalize_all([self.second_sheet, self.second_sheet])
        ids = [r.id for r in result.records]
        assert ids == ["provider-source0-2-siargao-breeze", "provider-source1-2-siargao-breeze"]
        assert len(set(ids)) == len(ids)

    def test_missing_hints_fall_back_to_ordinal(self):
        """Test blank hints are scoped by source position."""
        result = normalize_all([self.second_sheet, self.second_sheet], [None, None])
        assert [r.id for r in result.records] == [
            "provider-source0-2-siargao-breeze",
            "provider-source1-2-siargao-breeze",
        ]

        result = normalize_all([self.second_sheet, self.second_sheet], ["surigao-norte", ""])
        assert [r.id for r in result.records] == [
            "provider-surigao-norte-2-siargao-breeze",
            "provider-source1-2-siargao-breeze",
        ]

    def test_repeated_hints_rejected(self):
        """Test two sources may not share a hint."""
        with pytest.raises(ValueError):
            normalize_all([self.second_sheet, self.second_sheet], ["surigao-norte", "surigao-norte"])
        with pytest.raises(ValueError):
            normalize_all([self.second_sheet, self.second_sheet], [None, "source0"])

    def test_hint_count_mismatch(self):
        """Test mismatched hints are rejected."""
        with pytest.raises(ValueError):
            normalize_all([SAMPLE_SHEET], ["a", "b"])

    def test_empty_input(self):
        """Test aggregation of no sources."""
        result = normalize_all([])
        assert result.records == []
        assert result.freshness_date == ""
        assert result.source_count == 0


class TestRecords:
    """Test cases for record serialization."""

    def test_round_trip_dict(self):
        """Test camelCase conversion."""
        record = ProviderRecord(
            id="provider-1-a", location="BUTUAN CITY", enterprise_type="Hotel",
            name="A", address="x", phone="1", email=None,
            accreditation_no="TRE-1", validity="2026", status="New",
        )
        data = record.to_dict()
        assert "email" not in data
        assert data["enterpriseType"] == "Hotel"
        assert data["accreditationNo"] == "TRE-1"
        assert ProviderRecord.from_dict(data) == record

    def test_result_envelope(self):
        """Test result serialization."""
        result = NormalizationResult(freshness_date="May 1, 2020", error="x: failed")
        assert result.to_dict() == {
            "providers": [],
            "asOfDate": "May 1, 2020",
            "degraded": False,
            "error": "x: failed",
        }


if __name__ == "__main__":
    pytest.main([__file__])
