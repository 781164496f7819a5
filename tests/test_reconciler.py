from datetime import timedelta

import pytest

from contract_watch.core import critical_alert, reconcile, reconcile_error
from contract_watch.errors import FetchError
from contract_watch.models import AlertCategory, Observation, PersistedDocument

WATCH = "0xA3D68b74bF0528fdD07263c60d6488749044914b"
TWO_HOURS = 2 * 60 * 60


# =============================================================================
# Numeric supply
# =============================================================================

def test_supply_first_run_alerts_with_formatted_value(now):
    obs = Observation.supply(1234500000000000000000, decimals=18, symbol="weETH")

    result = reconcile(None, obs, now)

    assert result.fired
    alert = result.alert_for(AlertCategory.CHANGE)
    assert "1,234.5 weETH" in alert.message
    assert "Baseline" in alert.message
    assert result.should_persist
    assert result.document.total_supply == "1234500000000000000000"
    assert result.document.last_check == now


def test_supply_first_run_when_document_has_no_supply_field(now):
    previous = PersistedDocument(last_error_alert_at=now - timedelta(hours=5))

    result = reconcile(previous, Observation.supply(42), now)

    assert result.alert_for(AlertCategory.CHANGE) is not None
    assert result.document.total_supply == "42"
    # Error bookkeeping survives
    assert result.document.last_error_alert_at == previous.last_error_alert_at


def test_supply_unchanged_does_not_alert_or_persist(now):
    previous = PersistedDocument(total_supply="100")

    result = reconcile(previous, Observation.supply(100), now)

    assert not result.fired
    assert not result.should_persist
    assert result.document == previous


def test_supply_changed_message_contains_old_and_new(now):
    previous = PersistedDocument(total_supply="100")

    result = reconcile(previous, Observation.supply(150), now)

    message = result.alert_for(AlertCategory.CHANGE).message
    assert "100" in message
    assert "150" in message
    assert "+50" in message
    assert result.document.total_supply == "150"
    assert result.should_persist


def test_supply_compare_is_exact_beyond_float_precision(now):
    # 2**53 + 1 and 2**53 are equal as floats
    big = 2 ** 53
    previous = PersistedDocument(total_supply=str(big))

    result = reconcile(previous, Observation.supply(big + 1), now)

    assert result.fired
    assert str(big + 1) in result.alert_for(AlertCategory.CHANGE).message


def test_supply_decimal_looking_string_is_not_equal(now):
    previous = PersistedDocument(total_supply="1000000000000000000.0")

    result = reconcile(previous, Observation.supply(10 ** 18), now)

    assert result.fired
    assert result.document.total_supply == "1000000000000000000"


def test_supply_equal_huge_values(now):
    value = 123456789012345678901234567890
    previous = PersistedDocument(total_supply=str(value))

    assert not reconcile(previous, Observation.supply(value), now).fired


def test_reconcile_is_idempotent_for_fixed_previous(now):
    previous = PersistedDocument(total_supply="100")
    obs = Observation.supply(150)

    first = reconcile(previous, obs, now)
    second = reconcile(previous, obs, now + timedelta(seconds=5))

    assert first.alerts == second.alerts
    assert first.should_persist == second.should_persist


# =============================================================================
# Content fingerprint
# =============================================================================

def test_fingerprint_first_run_reports_baseline(now):
    obs = Observation.fingerprint("abc", content="<html>quiet page</html>")

    result = reconcile(None, obs, now, watch_address=WATCH)

    alert = result.alert_for(AlertCategory.CHANGE)
    assert "Baseline established" in alert.message
    assert result.document.page_hash == "abc"
    assert result.document.last_check == now
    assert result.should_persist


def test_fingerprint_unchanged_is_quiet(now):
    previous = PersistedDocument(page_hash="abc")
    obs = Observation.fingerprint("abc", content="<html>quiet page</html>")

    result = reconcile(previous, obs, now, watch_address=WATCH)

    assert not result.fired
    assert not result.should_persist


def test_fingerprint_change_mentions_watch_address_when_present(now):
    previous = PersistedDocument(page_hash="old")
    obs = Observation.fingerprint(
        "new",
        content=f"transfer of {WATCH.lower()} reserve",
        source_url="https://plasmascan.to/address/0x1",
    )

    result = reconcile(previous, obs, now, watch_address=WATCH)

    message = result.alert_for(AlertCategory.CHANGE).message
    assert WATCH in message
    assert "https://plasmascan.to/address/0x1" in message


def test_fingerprint_change_without_watch_address_uses_generic_message(now):
    previous = PersistedDocument(page_hash="old")
    obs = Observation.fingerprint("new", content="some other transfer")

    result = reconcile(previous, obs, now, watch_address=WATCH)

    message = result.alert_for(AlertCategory.CHANGE).message
    assert message.startswith("New contract activity detected")
    assert WATCH not in message


def test_large_amount_alert_then_suppression_then_new_token(now):
    content = "Deposit of 5000 WETH"

    first = reconcile(PersistedDocument(page_hash="h"), Observation.fingerprint("h", content), now)
    amount_alert = first.alert_for(AlertCategory.LARGE_AMOUNT)
    assert "5000 WETH" in amount_alert.message
    assert first.alert_for(AlertCategory.CHANGE) is None
    assert first.document.previous_large_amounts == ["5000 WETH"]
    assert first.should_persist

    second = reconcile(first.document, Observation.fingerprint("h", content), now)
    assert not second.fired
    assert not second.should_persist

    third_content = "Deposit of 5000 WETH, then 9000 ETH"
    third = reconcile(second.document, Observation.fingerprint("h", third_content), now)
    message = third.alert_for(AlertCategory.LARGE_AMOUNT).message
    assert "9000 ETH" in message
    assert "5000 WETH" not in message
    assert third.document.previous_large_amounts == ["5000 WETH", "9000 ETH"]


def test_large_amounts_are_replaced_not_merged(now):
    previous = PersistedDocument(page_hash="h", previous_large_amounts=["5000 WETH"])

    result = reconcile(previous, Observation.fingerprint("h", "moved 7000 tokens"), now)

    assert result.document.previous_large_amounts == ["7000 tokens"]


def test_small_amounts_leave_stored_amounts_alone(now):
    previous = PersistedDocument(page_hash="h", previous_large_amounts=["5000 WETH"])

    result = reconcile(previous, Observation.fingerprint("h", "only 12 ETH today"), now)

    assert not result.fired
    assert result.document.previous_large_amounts == ["5000 WETH"]
    assert not result.should_persist


def test_first_run_reports_baseline_and_large_amounts_separately(now):
    obs = Observation.fingerprint("h", "Deposit of 5000 WETH")

    result = reconcile(None, obs, now)

    assert [a.category for a in result.alerts] == [
        AlertCategory.CHANGE,
        AlertCategory.LARGE_AMOUNT,
    ]
    assert "5000 WETH" not in result.alert_for(AlertCategory.CHANGE).message


def test_amount_pass_failure_does_not_fail_reconcile(now, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("regex exploded")

    monkeypatch.setattr("contract_watch.core.reconciler.flag_large_amounts", boom)
    previous = PersistedDocument(page_hash="old")

    result = reconcile(previous, Observation.fingerprint("new", "5000 WETH"), now)

    assert [a.category for a in result.alerts] == [AlertCategory.CHANGE]
    assert result.document.page_hash == "new"


# =============================================================================
# Error cooldown
# =============================================================================

def test_error_alert_fires_without_previous_alert(now):
    result = reconcile_error(None, FetchError("HTTP 500"), now, TWO_HOURS)

    alert = result.alert_for(AlertCategory.ERROR)
    assert "HTTP 500" in alert.message
    assert result.document.last_error_alert_at == now
    assert result.should_persist


def test_error_cooldown_sequence(now):
    first = reconcile_error(None, FetchError("down"), now, TWO_HOURS)
    assert first.fired

    second = reconcile_error(first.document, FetchError("down"), now + timedelta(minutes=30), TWO_HOURS)
    assert not second.fired
    assert not second.should_persist
    # Suppression does not move the window
    assert second.document.last_error_alert_at == now

    third = reconcile_error(
        second.document, FetchError("down"), now + timedelta(hours=2, seconds=1), TWO_HOURS
    )
    assert third.fired
    assert third.document.last_error_alert_at == now + timedelta(hours=2, seconds=1)


def test_error_exactly_at_window_edge_is_suppressed(now):
    previous = PersistedDocument(last_error_alert_at=now - timedelta(hours=2))

    assert not reconcile_error(previous, FetchError("down"), now, TWO_HOURS).fired


def test_error_keeps_observation_fields(now):
    previous = PersistedDocument(page_hash="h", previous_large_amounts=["5000 WETH"])

    result = reconcile_error(previous, FetchError("down"), now, TWO_HOURS)

    assert result.document.page_hash == "h"
    assert result.document.previous_large_amounts == ["5000 WETH"]


def test_critical_alert_message():
    alert = critical_alert(RuntimeError("boom"))
    assert alert.category is AlertCategory.CRITICAL
    assert alert.message == "Critical error in monitor: boom"


def test_supply_observation_rejects_float():
    with pytest.raises(TypeError):
        Observation.supply(1.5)
