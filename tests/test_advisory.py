"""
Advisory Engine Test Suite
"""
import re
from unittest.mock import patch

import pytest

from crop_advisory.advisory import (
    RULE_ORDER,
    AdvisoryEntry,
    Category,
    Severity,
    evaluate,
    upcoming_rainfall,
)
from crop_advisory.config import RulesConfig
from crop_advisory.crops import REGISTRY, CropProfile, OptimalRange, lookup

from helpers import make_forecast, make_reading

CROPS = [key for key, _ in REGISTRY.list_all()]


def kinds(entries):
    return [(e.severity, e.category) for e in entries]


def by_category(entries, category):
    return [e for e in entries if e.category is category]


class TestScenarios:
    def test_rice_in_planting_season(self):
        entries = evaluate(6, make_reading(24, 65), make_forecast([2.5, 0, 15, 8, 0]), lookup("rice"))

        assert kinds(entries) == [
            (Severity.SUCCESS, Category.TEMPERATURE),
            (Severity.SUCCESS, Category.HUMIDITY),
            (Severity.INFO, Category.IRRIGATION),
            (Severity.SUCCESS, Category.PLANTING),
        ]
        assert "23.0mm" in entries[2].message
        assert entries[2].action == "Monitor soil moisture regularly"

    def test_wheat_hot_and_dry(self):
        entries = evaluate(1, make_reading(28, 30), make_forecast([0, 1, 1, 0, 0]), lookup("wheat"))

        assert kinds(entries) == [
            (Severity.WARNING, Category.TEMPERATURE),
            (Severity.WARNING, Category.HUMIDITY),
            (Severity.INFO, Category.IRRIGATION),
            (Severity.SUCCESS, Category.PLANTING),
        ]
        assert entries[0].action == "Implement cooling measures"
        assert "Increase irrigation frequency" in entries[1].message
        assert "2.0mm" in entries[2].message
        assert "adequate" in entries[2].message

    def test_tomato_humid_with_heavy_rain(self):
        entries = evaluate(8, make_reading(22, 85), make_forecast([0, 20, 10, 10, 0]), lookup("tomato"))

        assert kinds(entries) == [
            (Severity.SUCCESS, Category.TEMPERATURE),
            (Severity.WARNING, Category.HUMIDITY),
            (Severity.INFO, Category.IRRIGATION),
            (Severity.WARNING, Category.DISEASE_RISK),
        ]
        assert entries[1].action == "Improve air circulation"
        assert "40.0mm" in entries[2].message
        assert "ensure drainage" in entries[2].message
        assert entries[3].action == "Apply preventive fungicide treatments"

    def test_messages_embed_values(self):
        entries = evaluate(6, make_reading(10, 50), make_forecast([0, 0, 0, 0]), lookup("rice"))
        assert entries[0].message.startswith("Temperature (10°C) is below optimal range (20°C - 35°C)")
        assert entries[0].action == "Protect crops from cold stress"
        assert entries[1].message.startswith("Humidity (50%) is below optimal range (60% - 80%)")


class TestTemperatureRule:
    @pytest.mark.parametrize("crop_key", CROPS)
    @pytest.mark.parametrize("temp", [-5, 14.9, 15, 18, 20, 24.5, 25, 26, 30, 35, 35.1, 45])
    def test_exactly_one_entry_with_expected_severity(self, crop_key, temp):
        crop = lookup(crop_key)
        entries = by_category(evaluate(3, make_reading(temperature=temp), [], crop), Category.TEMPERATURE)

        assert len(entries) == 1
        band = crop.optimal_temperature
        outside = temp < band.min or temp > band.max
        assert entries[0].severity is (Severity.WARNING if outside else Severity.SUCCESS)

    def test_bounds_count_as_optimal(self):
        wheat = lookup("wheat")
        for temp in (15, 25):
            entry = evaluate(3, make_reading(temperature=temp), [], wheat)[0]
            assert entry.severity is Severity.SUCCESS
            assert entry.message == f"Temperature ({temp}°C) is optimal for Wheat."

    def test_fractional_temperature_formatting(self):
        entry = evaluate(3, make_reading(temperature=25.5), [], lookup("wheat"))[0]
        assert "(25.5°C)" in entry.message

    def test_full_precision_temperature(self):
        entry = evaluate(3, make_reading(temperature=23.456789), [], lookup("wheat"))[0]
        assert entry.message == "Temperature (23.456789°C) is optimal for Wheat."

    def test_large_temperature_is_not_in_exponent_form(self):
        entry = evaluate(3, make_reading(temperature=1234567), [], lookup("wheat"))[0]
        assert "(1234567°C)" in entry.message
        assert "e+" not in entry.message

    def test_optimal_branch_uses_band_membership(self):
        with patch.object(OptimalRange, "__contains__", return_value=True) as contains:
            entry = evaluate(3, make_reading(temperature=50), [], lookup("wheat"))[0]
        contains.assert_any_call(50)
        assert entry.severity is Severity.SUCCESS


class TestHumidityRule:
    @pytest.mark.parametrize("crop_key", CROPS)
    @pytest.mark.parametrize("humidity", [0, 39, 40, 50, 60, 70, 75, 80, 81, 100])
    def test_exactly_one_entry_with_expected_severity(self, crop_key, humidity):
        crop = lookup(crop_key)
        entries = by_category(evaluate(3, make_reading(humidity=humidity), [], crop), Category.HUMIDITY)

        assert len(entries) == 1
        band = crop.optimal_humidity
        outside = humidity < band.min or humidity > band.max
        assert entries[0].severity is (Severity.WARNING if outside else Severity.SUCCESS)

    def test_actions(self):
        rice = lookup("rice")
        low, = by_category(evaluate(3, make_reading(humidity=59), [], rice), Category.HUMIDITY)
        ok, = by_category(evaluate(3, make_reading(humidity=80), [], rice), Category.HUMIDITY)
        high, = by_category(evaluate(3, make_reading(humidity=81), [], rice), Category.HUMIDITY)
        assert low.action == "Monitor soil moisture closely"
        assert ok.action == "Continue current practices"
        assert high.action == "Improve air circulation"

    def test_full_precision_humidity(self):
        entry, = by_category(evaluate(3, make_reading(humidity=65.123456), [], lookup("wheat")), Category.HUMIDITY)
        assert entry.message == "Humidity (65.123456%) is optimal for Wheat."


class TestIrrigationRule:
    @pytest.mark.parametrize("rainfall, expected", [
        ([100, 1.25, 2.5, 3.75, 100], 7.5),
        ([0, 0, 15, 8, 0], 23.0),
        ([0, 10.04, 0, 0], 10.0),
        ([5, 6], 6.0),
        ([9], 0.0),
        ([], 0.0),
    ])
    def test_embedded_figure_is_days_one_to_three(self, rainfall, expected):
        forecast = make_forecast(rainfall)
        assert upcoming_rainfall(forecast) == pytest.approx(sum(rainfall[1:4]))

        entry, = by_category(evaluate(3, make_reading(), forecast, lookup("tomato")), Category.IRRIGATION)
        figures = re.findall(r"\((\d+\.\d)mm\)", entry.message)
        assert figures == [f"{expected:.1f}"]

    def test_heavy_rain_threshold_is_strict(self):
        at, = by_category(evaluate(3, make_reading(), make_forecast([0, 10, 10, 10]), lookup("rice")),
                          Category.IRRIGATION)
        over, = by_category(evaluate(3, make_reading(), make_forecast([0, 10, 10, 10.5]), lookup("rice")),
                            Category.IRRIGATION)
        assert at.action == "Monitor soil moisture regularly"
        assert over.action == "Prepare for excess water management"

    def test_low_rain_warns_only_for_thirsty_crops(self):
        dry = make_forecast([0, 1, 1, 2.9])
        rice, = by_category(evaluate(3, make_reading(), dry, lookup("rice")), Category.IRRIGATION)
        corn, = by_category(evaluate(3, make_reading(), dry, lookup("corn")), Category.IRRIGATION)
        wheat, = by_category(evaluate(3, make_reading(), dry, lookup("wheat")), Category.IRRIGATION)

        assert rice.severity is Severity.WARNING
        assert rice.message == "Low rainfall expected (4.9mm). Increase irrigation for water-intensive Rice."
        assert corn.severity is Severity.WARNING
        assert wheat.severity is Severity.INFO

    def test_low_rain_threshold_is_strict(self):
        entry, = by_category(evaluate(3, make_reading(), make_forecast([0, 5, 0, 0]), lookup("rice")),
                             Category.IRRIGATION)
        assert entry.severity is Severity.INFO

    def test_single_day_forecast(self):
        short = make_forecast([50])
        rice, = by_category(evaluate(3, make_reading(), short, lookup("rice")), Category.IRRIGATION)
        tomato, = by_category(evaluate(3, make_reading(), short, lookup("tomato")), Category.IRRIGATION)

        assert "(0.0mm)" in rice.message
        assert rice.severity is Severity.WARNING
        assert tomato.severity is Severity.INFO
        assert "adequate" in tomato.message

    def test_today_is_not_counted(self):
        assert upcoming_rainfall(make_forecast([99, 0, 0, 0])) == 0


class TestSeasonRules:
    @pytest.mark.parametrize("crop_key", CROPS)
    @pytest.mark.parametrize("month", range(1, 13))
    def test_presence_follows_crop_calendar(self, crop_key, month):
        crop = lookup(crop_key)
        entries = evaluate(month, make_reading(), [], crop)

        assert len(by_category(entries, Category.PLANTING)) == (month in crop.planting_months)
        assert len(by_category(entries, Category.HARVEST)) == (month in crop.harvest_months)

    def test_planting_and_harvest_can_co_occur(self):
        wheat = lookup("wheat")
        crop = CropProfile(
            name="Test",
            optimal_temperature=wheat.optimal_temperature,
            optimal_humidity=wheat.optimal_humidity,
            water_requirement=wheat.water_requirement,
            growth_stages=(),
            planting_months={4},
            harvest_months={4},
        )
        categories = [e.category for e in evaluate(4, make_reading(), [], crop)]
        assert categories[3:5] == [Category.PLANTING, Category.HARVEST]

    def test_entries(self):
        planting, = by_category(evaluate(5, make_reading(), [], lookup("rice")), Category.PLANTING)
        harvest, = by_category(evaluate(11, make_reading(), [], lookup("rice")), Category.HARVEST)
        assert planting.severity is Severity.SUCCESS
        assert planting.action == "Consider starting new plantings"
        assert harvest.action == "Prepare for harvesting activities"
        assert harvest.message == "This is harvest season for Rice. Monitor crop maturity."


class TestDiseaseRiskRule:
    @pytest.mark.parametrize("crop_key", CROPS)
    @pytest.mark.parametrize("temp, humidity, expected", [
        (22, 85, True),
        (20, 85, False),
        (20.1, 80.1, True),
        (30, 80, False),
        (5, 95, False),
        (35, 100, True),
    ])
    def test_independent_of_crop(self, crop_key, temp, humidity, expected):
        entries = evaluate(3, make_reading(temp, humidity), [], lookup(crop_key))
        risk = by_category(entries, Category.DISEASE_RISK)
        assert len(risk) == (1 if expected else 0)
        if expected:
            assert risk[0].severity is Severity.WARNING
            assert entries[-1] is risk[0]

    def test_message(self):
        entry = evaluate(3, make_reading(22, 85), [], lookup("rice"))[-1]
        assert entry.message == "High humidity (85%) and temperature (22°C) favor fungal diseases."


class TestEngineContract:
    def test_no_crop_yields_nothing(self, reading, forecast):
        assert evaluate(6, reading, forecast, None) == []

    def test_core_rules_always_emit(self, reading, forecast):
        for key in CROPS:
            categories = [e.category for e in evaluate(8, reading, forecast, lookup(key))]
            assert categories[:3] == [Category.TEMPERATURE, Category.HUMIDITY, Category.IRRIGATION]
        assert len(evaluate(6, reading, forecast, lookup("rice"))) == 4

    def test_idempotent(self, reading, forecast):
        crop = lookup("tomato")
        first = evaluate(9, make_reading(22, 85), forecast, crop)
        second = evaluate(9, make_reading(22, 85), forecast, crop)
        assert first == second
        assert [e.to_dict() for e in first] == [e.to_dict() for e in second]

    def test_rule_order(self):
        names = [rule.__name__ for rule in RULE_ORDER]
        assert names == [
            "temperature_rule", "humidity_rule", "irrigation_rule",
            "planting_rule", "harvest_rule", "disease_risk_rule",
        ]

    def test_category_order_is_preserved(self):
        crop = lookup("tomato")
        entries = evaluate(12, make_reading(40, 95), make_forecast([0, 0, 0, 0]), crop)
        assert [e.category for e in entries] == [
            Category.TEMPERATURE, Category.HUMIDITY, Category.IRRIGATION,
            Category.HARVEST, Category.DISEASE_RISK,
        ]

    def test_accepts_any_sequence(self, reading):
        crop = lookup("rice")
        days = make_forecast([0, 1, 2, 3])
        assert evaluate(6, reading, tuple(days), crop) == evaluate(6, reading, days, crop)

    def test_implausible_values_do_not_raise(self):
        entries = evaluate(6, make_reading(-80, 250), [], lookup("rice"))
        assert len(entries) >= 3

    def test_custom_thresholds(self, reading):
        strict = RulesConfig(heavy_rain_mm=1.0)
        entry, = by_category(
            evaluate(3, reading, make_forecast([0, 2, 0, 0]), lookup("wheat"), strict),
            Category.IRRIGATION,
        )
        assert entry.action == "Prepare for excess water management"

    def test_to_dict(self):
        entry = AdvisoryEntry(Severity.INFO, Category.DISEASE_RISK, "m", "a")
        assert entry.to_dict() == {"severity": "info", "category": "Disease Risk", "message": "m", "action": "a"}
