import calendar
from datetime import date
import re
from typing import Optional

import attrs

from src.service.shared_kernel.domain.enum import PaymentMethod


_CARD_NUMBER = re.compile(r'^\d{13,19}$')
_CVV = re.compile(r'^\d{3,4}$')


@attrs.frozen
class PayerDetails:
    """What the payer typed in (or the gateway token their browser produced)."""

    payer_name: str
    method: PaymentMethod = attrs.field(converter=PaymentMethod)
    card_number: Optional[str] = attrs.field(default=None, repr=False)
    cvv: Optional[str] = attrs.field(default=None, repr=False)
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    payment_token: Optional[str] = attrs.field(default=None, repr=False)

    @property
    def normalized_card_number(self) -> str:
        return re.sub(r'\s+', '', self.card_number or '')

    @property
    def charge_source(self) -> str:
        """Token for tokenized payments, otherwise the bare card number."""
        if self.method is PaymentMethod.GATEWAY_TOKEN:
            return (self.payment_token or '').strip()
        return self.normalized_card_number

    def validation_error(self, *, today: date) -> Optional[str]:
        """Return the first problem with these details, or None when they are usable."""
        name = (self.payer_name or '').strip()
        if not name:
            return 'Payer name is required'
        if len(name) < 2:
            return 'Payer name must be at least 2 characters'

        if self.method is PaymentMethod.GATEWAY_TOKEN:
            if not (self.payment_token or '').strip():
                return 'Payment token is required'
            return None

        if not _CARD_NUMBER.match(self.normalized_card_number):
            return 'Card number must contain 13 to 19 digits'
        if not _CVV.match((self.cvv or '').strip()):
            return 'CVV must contain 3 or 4 digits'
        return self._expiry_error(today=today)

    def _expiry_error(self, *, today: date) -> Optional[str]:
        month_text = (self.expiry_month or '').strip()
        year_text = (self.expiry_year or '').strip()
        if not month_text.isdigit() or not year_text.isdigit() or len(year_text) not in (2, 4):
            return 'Invalid expiry date format'

        month, year = int(month_text), int(year_text)
        if not 1 <= month <= 12:
            return 'Expiry month must be between 1 and 12'
        if len(year_text) == 2:
            year += 2000

        # Valid through the last day of the expiry month
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        if last_day < today:
            return 'Card has expired'
        return None
