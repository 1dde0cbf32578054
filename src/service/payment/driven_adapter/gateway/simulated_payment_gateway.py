from decimal import Decimal
from uuid import uuid4

from src.platform.logging.loguru_io import Logger
from src.service.payment.app.interface.i_payment_gateway import (
    GatewayChargeResult,
    IPaymentGateway,
)


# Stripe's "generic decline" test card
DECLINED_TEST_CARD = '4000000000000002'


class SimulatedPaymentGateway(IPaymentGateway):
    """Approves everything except the declined test card. For local runs and demos."""

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
        if payment_token.startswith(DECLINED_TEST_CARD):
            Logger.base.info(f'🎭 [GATEWAY] Simulated decline for {description} ({amount})')
            return GatewayChargeResult(
                success=False, transaction_reference=None, message='Card declined (simulated)'
            )

        reference = f'sim_{uuid4().hex[:16]}'
        Logger.base.info(f'🎭 [GATEWAY] Simulated charge {reference} for {description} ({amount})')
        return GatewayChargeResult(
            success=True, transaction_reference=reference, message='Payment approved (simulated)'
        )
