# tests/test_report.py
"""Tests for the Hebrew connection report template"""
from connection_bot.core.engine.domain import StructuredAddress
from connection_bot.core.bots.connection_report.questions import PANEL_EXISTING, PANEL_NEW
from connection_bot.core.bots.connection_report.report import format_report


def _answers(**overrides):
    answers = {
        "acc_number": "12345",
        "order_number": "111+222",
        "client_name": "Acme",
        "address": StructuredAddress(street="הרצל", building="10", city="חיפה"),
        "ports": "1/1/1",
        "pop": "POP-7",
        "panel_type": PANEL_EXISTING,
        "panel_ports": "ge1-2",
        "distance": "120m",
    }
    answers.update(overrides)
    return answers


class TestFormatReport:

    def test_full_report(self):
        report = format_report(_answers())

        assert report.split("\n") == [
            "חיבור לקוח עסקי",
            "ACC-12345",
            "111+222 Acme",
            "הרצל 10 חיפה",
            "פורטים: 1/1/1",
            "אתר מזין - POP-7",
            "פנל לקוחות קיים",
            "פורטים GE1-2",
            "מרחק 120 OTDR",
        ]

    def test_distance_keeps_digits_only(self):
        report = format_report(_answers(distance="about 1,250 m"))
        assert "מרחק 1250 OTDR" in report

    def test_panel_ports_upper_cased(self):
        report = format_report(_answers(panel_ports="xe-0/0/1"))
        assert "פורטים XE-0/0/1" in report

    def test_new_panel_leaves_state_blank(self):
        lines = format_report(_answers(panel_type=PANEL_NEW)).split("\n")
        assert lines[6] == "פנל לקוחות "

    def test_address_without_building(self):
        address = StructuredAddress(street="הרצל 10", city="חיפה")
        lines = format_report(_answers(address=address)).split("\n")
        assert lines[3] == "הרצל 10 חיפה"

    def test_address_missing(self):
        lines = format_report(_answers(address=None)).split("\n")
        assert lines[3] == " "

    def test_empty_answers_never_raise(self):
        report = format_report({})

        assert report.startswith("חיבור לקוח עסקי")
        assert "ACC-" in report
        assert report.endswith("מרחק  OTDR")
