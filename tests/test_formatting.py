"""Tests for formatting utilities."""

import pytest

from utils.formatting import (
    format_cents,
    format_fixture_line,
    format_pick_line,
    format_player_status_line,
    format_timestamp,
    parse_amount_to_cents,
)


class TestMoney:
    """Money is stored as integer cents and shown in pounds."""

    @pytest.mark.parametrize(
        "amount,expected",
        [(0, "£0.00"), (5, "£0.05"), (1050, "£10.50"), (123456789, "£1,234,567.89"), (-250, "-£2.50")],
    )
    def test_format_cents(self, amount, expected):
        assert format_cents(amount) == expected

    def test_format_cents_none(self):
        assert format_cents(None) == "-"

    @pytest.mark.parametrize(
        "text,expected",
        [("10", 1000), ("10.5", 1050), ("£10.50", 1050), (" 1,000 ", 100000), ("0.01", 1)],
    )
    def test_parse_amount(self, text, expected):
        assert parse_amount_to_cents(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "10.505", "-5", "1.2.3", None])
    def test_parse_amount_rejects_bad_input(self, text):
        assert parse_amount_to_cents(text) is None


class TestLines:
    def test_format_timestamp(self):
        assert format_timestamp(1_700_000_000) == "<t:1700000000:R>"
        assert format_timestamp(None) == "unknown"

    def test_format_pick_line(self):
        assert format_pick_line(3, "Arsenal", "win") == "GW3: Arsenal ✅"
        assert format_pick_line(4, "Everton", "pending", is_auto=True) == "GW4: Everton (auto) ⏳"

    def test_format_pick_line_unknown_result(self):
        assert format_pick_line(1, "Chelsea", "void") == "GW1: Chelsea"

    def test_format_player_status_line(self):
        status = {"status": "eliminated", "display_text": "Eliminated (Chelsea)"}
        assert format_player_status_line("<@1>", status) == "💀 <@1> - Eliminated (Chelsea)"

    def test_format_fixture_line_scheduled(self):
        fixture = {
            "home_team": "Arsenal", "away_team": "Chelsea",
            "home_score": None, "away_score": None, "status": "scheduled", "kickoff": 1_700_000_000,
        }
        assert format_fixture_line(fixture) == "Arsenal v Chelsea · <t:1700000000:R>"

    def test_format_fixture_line_scored(self):
        fixture = {
            "home_team": "Arsenal", "away_team": "Chelsea",
            "home_score": 2, "away_score": 1, "status": "finished", "kickoff": 1_700_000_000,
        }
        assert format_fixture_line(fixture) == "Arsenal **2-1** Chelsea"
        assert format_fixture_line({**fixture, "status": "live"}) == "Arsenal **2-1** Chelsea (live)"
