"""
金额值对象 - 订单与支付共用
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from domain.common.exceptions import CurrencyMismatchException, InvalidAmountException


Number = Union[Decimal, int, str]


@dataclass(frozen=True)
class Money:
    """
    不可变的 金额 + ISO-4217 币种

    使用 Decimal 保证商店金额（"19.99"）精确；两个金额运算时币种必须一致。
    """

    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise InvalidAmountException(self.amount, field="amount")
        if not self.amount.is_finite():
            raise InvalidAmountException(self.amount, field="amount")
        object.__setattr__(self, "currency", (self.currency or "").upper())

    @classmethod
    def of(cls, value: Number, currency: str) -> "Money":
        if isinstance(value, Decimal):
            return cls(value, currency)
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise InvalidAmountException(value)
        return cls.parse(str(value), currency)

    @classmethod
    def parse(cls, text: str | None, currency: str) -> "Money":
        """
        解析商店/支付渠道返回的金额字符串

        格式错误时抛出 InvalidAmountException，不会当作 0 处理。
        """
        if text is None or not isinstance(text, str) or not text.strip():
            raise InvalidAmountException(text)
        try:
            amount = Decimal(text.strip())
        except InvalidOperation as exc:
            raise InvalidAmountException(text) from exc
        if not amount.is_finite():
            raise InvalidAmountException(text)
        return cls(amount, currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(Decimal("0"), currency)

    def __add__(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: Union[int, Decimal]) -> "Money":
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError(f"Can only multiply Money by int or Decimal, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def to_store_format(self) -> str:
        return f"{self.amount:.2f}"

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    def _assert_same_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if self.currency != other.currency:
            raise CurrencyMismatchException(self.currency, other.currency)
