from abc import ABC, abstractmethod
from decimal import Decimal

import attrs


@attrs.frozen
class GatewayChargeResult:
    success: bool
    transaction_reference: str | None
    message: str


class IPaymentGateway(ABC):
    @abstractmethod
    async def charge(
        self,
        *,
        amount: Decimal,
        payer_name: str,
        payment_token: str,
        description: str,
        idempotency_key: str | None = None,
    ) -> GatewayChargeResult:
        """
        Charge ``amount`` once.

        ``idempotency_key`` identifies the payment attempt at the gateway, so a
        charge that completes after the caller gave up can be matched later.

        A decline is a GatewayChargeResult with success=False; transport or
        gateway failures raise.
        """
        pass
