"""Pydantic models for Pyth Hermes price update responses."""

from pydantic import BaseModel


class PythPrice(BaseModel):
    price: int
    conf: int
    expo: int
    publish_time: int = 0

    model_config = {"extra": "ignore"}

    @property
    def usd(self) -> float:
        return self.price * 10**self.expo

    @property
    def confidence(self) -> float:
        return self.conf * 10**self.expo


class PythParsedUpdate(BaseModel):
    id: str  # feed id, hex without 0x
    price: PythPrice

    model_config = {"extra": "ignore"}


class PythLatestResponse(BaseModel):
    parsed: list[PythParsedUpdate] = []

    model_config = {"extra": "ignore"}
