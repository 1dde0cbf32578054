"""
Unit tests for ProcessPaymentUseCase

Focus:
1. Malformed payer details never reach storage or the gateway
2. A PENDING payment is recorded before the gateway is called
3. Decline / timeout / gateway crash: payment FAILED, reservation untouched
. Recording the outcome is retried once; after that the payment is flagged for manual settlement
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import anyio
import attrs
import pytest
from returns.result import Failure

from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.state.keyed_lock import KeyedLock
from src.service.payment.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.payment.app.interface.i_payment_gateway import GatewayChargeResult
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.shared_kernel.domain.booking_error import (
    InvalidReservationState,
    NotFound,
    PaymentDeclined,
    PaymentInvalid,
    Unauthorized,
)
from src.service.shared_kernel.domain.enum import (
    PaymentStatus,
    ReservationStatus,
    TicketTier,
)


pytestmark = pytest.mark.unit

APPROVED = GatewayChargeResult(success=True, transaction_reference='sim_1', message='ok')
DECLINED = GatewayChargeResult(success=False, transaction_reference=None, message='Card declined')


class MockUnitOfWork:
    def __init__(self, reservation: Reservation | None) -> None:
        self.reservation_repo = MagicMock()
        self.reservation_repo.get_by_id = AsyncMock(return_value=reservation)
        self.reservation_repo.save = AsyncMock(side_effect=lambda reservation: reservation)
        self.payment_repo = MagicMock()
        self.payment_repo.create = AsyncMock(side_effect=lambda payment: payment)
        self.payment_repo.save = AsyncMock(side_effect=lambda payment: payment)
        self.commit = AsyncMock()

    async def __aenter__(self) -> 'MockUnitOfWork':
        return self

    async def __aexit__(self, *args) -> None:
        pass


@pytest.fixture
def reservation(now) -> Reservation:
    return Reservation.create(
        client_id=42,
        event_id=1,
        quantities={TicketTier.VIP: 1},
        prices={TicketTier.VIP: Decimal('25.00')},
        created_at=now,
    )


@pytest.fixture
def uow(reservation) -> MockUnitOfWork:
    return MockUnitOfWork(reservation)


@pytest.fixture
def gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.charge = AsyncMock(return_value=APPROVED)
    return gateway


@pytest.fixture
def use_case(uow, gateway, clock) -> ProcessPaymentUseCase:
    return ProcessPaymentUseCase(
        uow_factory=lambda: uow,
        gateway=gateway,
        reservation_lock=KeyedLock(name='test'),
        clock=clock,
        timeout_seconds=0.5,
    )


class TestProcessPaymentRejections:
    async def test_invalid_payer_never_touches_storage(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        payer = attrs.evolve(card_payer, cvv='1')

        result = await use_case.execute(reservation_id=reservation.id, client_id=42, payer=payer)

        assert result == Failure(PaymentInvalid(reason='CVV must contain 3 or 4 digits'))
        uow.reservation_repo.get_by_id.assert_not_called()
        gateway.charge.assert_not_called()

    async def test_unknown_reservation(self, use_case, uow, card_payer, reservation):
        uow.reservation_repo.get_by_id.return_value = None

        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        assert isinstance(result.failure(), NotFound)

    async def test_other_client_cannot_pay(self, use_case, gateway, card_payer, reservation):
        result = await use_case.execute(
            reservation_id=reservation.id, client_id=43, payer=card_payer
        )

        assert isinstance(result.failure(), Unauthorized)
        gateway.charge.assert_not_called()

    @pytest.mark.parametrize('status', [ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED])
    async def test_only_pending_reservations_can_be_paid(
        self, use_case, uow, gateway, card_payer, reservation, status
    ):
        uow.reservation_repo.get_by_id.return_value = attrs.evolve(reservation, status=status)

        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        assert isinstance(result.failure(), InvalidReservationState)
        uow.payment_repo.create.assert_not_called()
        gateway.charge.assert_not_called()


class TestProcessPaymentOutcomes:
    async def test_success_confirms_reservation(self, use_case, uow, gateway, card_payer, reservation):
        """
        Given: a pending reservation of 25.00
        When: the gateway approves the charge
        Then:
          - a payment for 25.00 is recorded and marked SUCCEEDED
          - the reservation is saved as CONFIRMED
        """
        # Act
        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        # Assert
        payment = result.unwrap()
        assert payment.status is PaymentStatus.SUCCEEDED
        assert payment.amount == Decimal('25.00')
        assert payment.transaction_reference == 'sim_1'
        gateway.charge.assert_awaited_once()
        assert gateway.charge.await_args.kwargs['payment_token'] == '4242424242424242'
        saved = uow.reservation_repo.save.await_args.kwargs['reservation']
        assert saved.status is ReservationStatus.CONFIRMED

    async def test_decline_records_failed_payment(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        gateway.charge.return_value = DECLINED

        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        error = result.failure()
        assert isinstance(error, PaymentDeclined)
        assert error.reason == 'Card declined'
        failed = uow.payment_repo.save.await_args.kwargs['payment']
        assert failed.status is PaymentStatus.FAILED
        assert str(failed.id) == error.payment_id
        uow.reservation_repo.save.assert_not_called()

    async def test_gateway_timeout_is_a_failed_attempt(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        async def slow_charge(**kwargs):
            await anyio.sleep(5)

        gateway.charge.side_effect = slow_charge

        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        assert result.failure().reason == 'Payment gateway timed out'
        uow.reservation_repo.save.assert_not_called()

    async def test_gateway_crash_is_a_failed_attempt(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        gateway.charge.side_effect = ConnectionError('connection reset')

        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        assert isinstance(result.failure(), PaymentDeclined)
        assert 'connection reset' in result.failure().reason

    async def test_reservation_cancelled_during_charge(
        self, use_case, uow, card_payer, reservation, now
    ):
        """
        Given: the reservation is cancelled while the gateway call is in flight
        When: the charge succeeds
        Then: the payment stays SUCCEEDED (refund needed) and the reservation is not confirmed
        """
        uow.reservation_repo.get_by_id.side_effect = [reservation, reservation.cancel(at=now)]

        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        assert isinstance(result.failure(), InvalidReservationState)
        assert uow.payment_repo.save.await_args.kwargs['payment'].status is PaymentStatus.SUCCEEDED
        uow.reservation_repo.save.assert_not_called()

    async def test_charge_carries_payment_idempotency_key(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        await use_case.execute(reservation_id=reservation.id, client_id=42, payer=card_payer)

        payment = uow.payment_repo.create.await_args.kwargs['payment']
        assert gateway.charge.await_args.kwargs['idempotency_key'] == f'payment_{payment.id}'


class TestProcessPaymentSettlement:
    async def test_failed_outcome_is_recorded_on_second_attempt(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        """
        Given: the gateway declines and the first write of the outcome fails
        When: the payment is processed
        Then: the FAILED outcome is written again and the decline is reported
        """
        # Arrange
        gateway.charge.return_value = DECLINED
        written = []

        async def flaky_save(payment):
            written.append(payment.status)
            if len(written) == 1:
                raise StorageError('connection lost')
            return payment

        uow.payment_repo.save.side_effect = flaky_save

        # Act
        result = await use_case.execute(
            reservation_id=reservation.id, client_id=42, payer=card_payer
        )

        # Assert
        assert isinstance(result.failure(), PaymentDeclined)
        assert written == [PaymentStatus.FAILED, PaymentStatus.FAILED]
        gateway.charge.assert_awaited_once()

    async def test_outcome_that_cannot_be_recorded_is_a_technical_error(
        self, use_case, uow, gateway, card_payer, reservation
    ):
        uow.payment_repo.save.side_effect = StorageError('database down')

        with pytest.raises(TechnicalError):
            await use_case.execute(reservation_id=reservation.id, client_id=42, payer=card_payer)

        assert uow.payment_repo.save.await_count == 2
        gateway.charge.assert_awaited_once()
