from enum import StrEnum


class PaymentMethod(StrEnum):
    CREDIT_CARD = 'credit_card'
    DEBIT_CARD = 'debit_card'
    GATEWAY_TOKEN = 'gateway_token'  # tokenized by the gateway's client-side SDK

    @property
    def requires_card_details(self) -> bool:
        return self in (PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD)
