"""
Stripe Payment Gateway

Creates and confirms a PaymentIntent in one call. The Stripe SDK is blocking,
so the call runs in a worker thread. Network retries are delegated to the SDK
(`max_network_retries`) and reuse the payment attempt's idempotency key, so a
retried request never charges twice and an abandoned one can be traced. The
payment use case itself never retries a charge.
"""

from decimal import ROUND_HALF_UP, Decimal
import functools
from typing import Any, Optional

from anyio import to_thread
import stripe

from src.platform.config.core_setting import Settings
from src.platform.logging.loguru_io import Logger
from src.service.payment.app.interface.i_payment_gateway import (
    GatewayChargeResult,
    IPaymentGateway,
)
from src.service.payment.driven_adapter.gateway.simulated_payment_gateway import (
    SimulatedPaymentGateway,
)


# Stripe test card numbers and their public test PaymentMethod ids
TEST_CARD_PAYMENT_METHODS: dict[str, str] = {
    '4242424242424242': 'pm_card_visa',
    '4000000000000002': 'pm_card_chargeDeclined',
    '4000000000000069': 'pm_card_expired',
    '5555555555554444': 'pm_card_mastercard',
}

_STATUS_MESSAGES: dict[str, str] = {
    'succeeded': 'Payment succeeded',
    'processing': 'Payment is still processing',
    'requires_action': 'Payment requires additional authentication',
    'requires_payment_method': 'Payment method was refused',
}


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class StripePaymentGateway(IPaymentGateway):
    def __init__(self, *, settings: Settings) -> None:
        self._api_key = settings.STRIPE_SECRET_KEY.get_secret_value()
        self._currency = settings.STRIPE_CURRENCY
        stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
        self._fallback: Optional[SimulatedPaymentGateway] = None
        if not self._api_key:
            Logger.base.warning('⚠️ [STRIPE] STRIPE_SECRET_KEY not set, charges are simulated')
            self._fallback = SimulatedPaymentGateway()

    @staticmethod
    def resolve_payment_method(payment_token: str) -> str:
        """Map known test card numbers to Stripe test PaymentMethods; pass real tokens through."""
        return TEST_CARD_PAYMENT_METHODS.get(payment_token, payment_token)

    @Logger.io
    async def charge(
        self,
        *,
        amount: Decimal,
        payer_name: str,
        payment_token: str,
        description: str,
        idempotency_key: str | None = None,
    ) -> GatewayChargeResult:
        if self._fallback is not None:
            return await self._fallback.charge(
                amount=amount,
                payer_name=payer_name,
                payment_token=payment_token,
                description=description,
                idempotency_key=idempotency_key,
            )

        metadata = {'payer_name': payer_name}
        if idempotency_key:
            metadata['payment_attempt'] = idempotency_key
        create_intent = functools.partial(
            stripe.PaymentIntent.create,
            api_key=self._api_key,
            amount=to_minor_units(amount),
            currency=self._currency,
            description=description,
            payment_method=self.resolve_payment_method(payment_token),
            confirm=True,
            automatic_payment_methods={'enabled': True, 'allow_redirects': 'never'},
            metadata=metadata,
            idempotency_key=idempotency_key,
        )
        try:
            # Abandoned (not killed) if the caller times out; the intent is then found by its key
            intent: Any = await to_thread.run_sync(create_intent, abandon_on_cancel=True)
        except stripe.CardError as e:
            Logger.base.info(f'💳 [STRIPE] Card declined: {e.user_message}')
            return GatewayChargeResult(
                success=False,
                transaction_reference=None,
                message=e.user_message or 'Card declined',
            )

        status = intent.status
        Logger.base.info(f'💳 [STRIPE] PaymentIntent {intent.id} status={status}')
        return GatewayChargeResult(
            success=status == 'succeeded',
            transaction_reference=intent.id,
            message=_STATUS_MESSAGES.get(status, f'Payment status: {status}'),
        )
