"""Tests for heuristic honeypot detection."""

import pytest

from src.parsers.honeypot_detector import (
    DEFAULT_RULES,
    STATUS_ANALYZED,
    STATUS_NO_POOL,
    STATUS_UNKNOWN,
    BytecodePatternRule,
    HoneypotContext,
    classify,
    detect_honeypot,
    unknown_honeypot_finding,
)

CLEAN_CODE = bytes.fromhex("6080604052348015600f57600080fd5b50")


def test_clean_verified_token() -> None:
    finding = detect_honeypot(CLEAN_CODE, owner_pct=0.0, verified=True, liquidity_usd=50_000.0)
    assert not finding.is_honeypot
    assert finding.indicators == ()
    assert finding.reason is None
    assert finding.status == STATUS_ANALYZED
    assert finding.sell_tax_pct == 0.0


def test_short_circuit_owner_unverified_minimal_liquidity() -> None:
    """Owner ~all supply, unverified, $500 pool → certain honeypot."""
    finding = detect_honeypot(CLEAN_CODE, owner_pct=99.5, verified=False, liquidity_usd=500.0)
    assert finding.is_honeypot
    assert finding.sell_tax_pct == 100.0
    assert finding.buy_tax_pct == 0.0
    assert finding.reason == (
        "Owner controls 99.50% of supply with unverified contract and minimal liquidity"
    )


def test_short_circuit_needs_some_liquidity() -> None:
    finding = detect_honeypot(CLEAN_CODE, owner_pct=99.5, verified=False, liquidity_usd=0.0)
    # still flagged by rules, but without the 100% sell tax estimate
    assert finding.is_honeypot
    assert finding.sell_tax_pct == 0.0


def test_bytecode_markers() -> None:
    code = CLEAN_CODE + b"isBlacklisted\x00tradingEnabled"
    finding = detect_honeypot(code, owner_pct=0.0, verified=True, liquidity_usd=10_000.0)
    assert finding.is_honeypot
    assert "Blacklist function detected: isblacklisted" in finding.indicators
    assert "Trading control detected: tradingenabled" in finding.indicators
    assert finding.reason == "; ".join(finding.indicators)


def test_single_indicator_not_enough() -> None:
    finding = detect_honeypot(CLEAN_CODE + b"cooldown", owner_pct=10.0, verified=True, liquidity_usd=10_000.0)
    assert finding.indicators == ("Cooldown mechanism detected: cooldown",)
    assert not finding.is_honeypot


def test_metric_indicators() -> None:
    finding = detect_honeypot(CLEAN_CODE, owner_pct=96.0, verified=False, liquidity_usd=50.0)
    assert "Owner holds 96.00% of supply" in finding.indicators
    assert "Contract not verified - cannot review code" in finding.indicators
    assert "Extremely low liquidity: $50.00" in finding.indicators
    assert "Owner holds >95% with minimal liquidity - classic honeypot" in finding.indicators
    assert finding.is_honeypot


def test_no_pool() -> None:
    finding = detect_honeypot(CLEAN_CODE, owner_pct=99.9, verified=False, liquidity_usd=0.0, has_pool=False)
    assert not finding.is_honeypot
    assert finding.reason == "No liquidity pool found"
    assert finding.status == STATUS_NO_POOL


def test_unknown_finding() -> None:
    finding = unknown_honeypot_finding()
    assert not finding.is_honeypot
    assert finding.status == STATUS_UNKNOWN


class TestClassify:
    def test_two_indicators(self) -> None:
        assert classify(["a", "b"], owner_pct=0.0, verified=True)

    def test_one_indicator_with_dominant_owner(self) -> None:
        assert classify(["a"], owner_pct=95.5, verified=True)
        assert not classify(["a"], owner_pct=95.0, verified=True)

    def test_unverified_with_owner_above_99(self) -> None:
        assert classify([], owner_pct=99.5, verified=False)
        assert not classify([], owner_pct=99.5, verified=True)


def test_custom_rule_set() -> None:
    rule = BytecodePatternRule("Mint function detected", ("mint",))
    finding = detect_honeypot(
        CLEAN_CODE + b"mint", owner_pct=0.0, verified=True, liquidity_usd=10_000.0,
        rules=(*DEFAULT_RULES, rule),
    )
    assert finding.indicators == ("Mint function detected: mint",)


def test_context_matches_hex_and_text() -> None:
    ctx = HoneypotContext.build(b"Pause", owner_pct=0.0, verified=True, liquidity_usd=1.0)
    assert "pause" in ctx.code_text
    assert b"Pause".hex() in ctx.code_text


@pytest.mark.parametrize("liquidity", [99.99, 1.0])
def test_low_liquidity_threshold(liquidity: float) -> None:
    finding = detect_honeypot(CLEAN_CODE, owner_pct=0.0, verified=True, liquidity_usd=liquidity)
    assert f"Extremely low liquidity: ${liquidity:.2f}" in finding.indicators
