"""FIFO position ledger: realized / unrealized PNL for one token.

Buys become lots, sells consume lots oldest-first. Matching is a
two-cursor merge over the buy list and the sell list: lot order is a
correctness invariant, so matching for one token is strictly sequential.
All values are in base-asset (wrapped native) terms.
"""

from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from src.models.token import Transfer

BUY = "buy"
SELL = "sell"

EPS = 1e-12

NOTE_PRICE_UNAVAILABLE = "price unavailable"
NOTE_DATA_INCONSISTENCY = "data inconsistency: sells exceed recorded buys"


@dataclass(frozen=True)
class Trade:
    tx_hash: str
    timestamp: datetime
    side: str  # BUY / SELL
    quantity: float
    base_value: float  # total base-asset value at execution

    @property
    def unit_value(self) -> float:
        return self.base_value / self.quantity if self.quantity > 0 else 0.0


@dataclass(frozen=True)
class Lot:
    tx_hash: str
    quantity: float  # remaining
    unit_cost: float
    timestamp: datetime


@dataclass(frozen=True)
class FifoResult:
    realized_pnl: float
    open_lots: tuple[Lot, ...]
    total_bought: float
    total_sold: float  # matched quantity only
    base_spent: float
    data_inconsistency: bool = False

    @property
    def remaining_quantity(self) -> float:
        return sum(lot.quantity for lot in self.open_lots)

    @property
    def remaining_cost_basis(self) -> float:
        return sum(lot.quantity * lot.unit_cost for lot in self.open_lots)


@dataclass(frozen=True)
class TokenPnL:
    token_address: str
    symbol: str
    realized_pnl: float
    unrealized_pnl: float
    total_pnl: float
    remaining_quantity: float
    average_buy_price: float
    current_price: float | None
    price_unavailable: bool = False
    data_inconsistency: bool = False
    notes: tuple[str, ...] = ()


def trades_from_transfers(wallet: str, transfers: list[Transfer]) -> list[Trade]:
    """Inbound transfers are buys, outbound are sells; self-transfers drop out."""
    trades = []
    for t in transfers:
        direction = t.direction(wallet)
        if direction == "self" or t.amount <= 0:
            continue
        trades.append(
            Trade(
                tx_hash=t.tx_hash,
                timestamp=t.timestamp,
                side=BUY if direction == "in" else SELL,
                quantity=t.amount,
                base_value=t.base_value or 0.0,
            )
        )
    return trades


def _chrono(t: Trade) -> tuple[datetime, str]:
    return t.timestamp, t.tx_hash


def match_fifo(trades: list[Trade]) -> FifoResult:
    """Match sells against buy lots oldest-first.

    A sell larger than the remaining lots is clamped to what is available
    and flagged as a data inconsistency; remaining quantity never goes
    negative.
    """
    buys = sorted((t for t in trades if t.side == BUY and t.quantity > 0), key=_chrono)
    sells = sorted((t for t in trades if t.side == SELL and t.quantity > 0), key=_chrono)

    cursor = 0
    lot_left = buys[0].quantity if buys else 0.0
    realized = 0.0
    matched_total = 0.0
    inconsistent = False

    for sell in sells:
        sell_unit = sell.unit_value
        sell_left = sell.quantity

        while sell_left > EPS and cursor < len(buys):
            matched = min(sell_left, lot_left)
            realized += matched * (sell_unit - buys[cursor].unit_value)
            matched_total += matched
            sell_left -= matched
            lot_left -= matched

            if lot_left <= EPS:
                cursor += 1
                lot_left = buys[cursor].quantity if cursor < len(buys) else 0.0

        if sell_left > EPS:
            inconsistent = True
            logger.debug(f"[PNL] sell {sell.tx_hash[:10]} unmatched for {sell_left:g} units")

    open_lots: list[Lot] = []
    if cursor < len(buys):
        head = buys[cursor]
        open_lots.append(Lot(head.tx_hash, lot_left, head.unit_value, head.timestamp))
        open_lots.extend(
            Lot(b.tx_hash, b.quantity, b.unit_value, b.timestamp) for b in buys[cursor + 1:]
        )

    return FifoResult(
        realized_pnl=realized,
        open_lots=tuple(open_lots),
        total_bought=sum(b.quantity for b in buys),
        total_sold=matched_total,
        base_spent=sum(b.base_value for b in buys),
        data_inconsistency=inconsistent,
    )


def compute_token_pnl(
    token_address: str,
    trades: list[Trade],
    current_price: float | None,
    *,
    symbol: str = "",
) -> TokenPnL:
    """PNL for one token; current_price is per unit in base-asset terms."""
    fifo = match_fifo(trades)
    remaining = fifo.remaining_quantity
    notes: list[str] = []

    unrealized = 0.0
    price_unavailable = False
    if remaining > EPS:
        if current_price is not None and current_price > 0:
            unrealized = current_price * remaining - fifo.remaining_cost_basis
        else:
            price_unavailable = True
            notes.append(NOTE_PRICE_UNAVAILABLE)
    if fifo.data_inconsistency:
        notes.append(NOTE_DATA_INCONSISTENCY)

    return TokenPnL(
        token_address=token_address,
        symbol=symbol,
        realized_pnl=fifo.realized_pnl,
        unrealized_pnl=unrealized,
        total_pnl=fifo.realized_pnl + unrealized,
        remaining_quantity=remaining,
        average_buy_price=fifo.base_spent / fifo.total_bought if fifo.total_bought > 0 else 0.0,
        current_price=current_price,
        price_unavailable=price_unavailable,
        data_inconsistency=fifo.data_inconsistency,
        notes=tuple(notes),
    )
