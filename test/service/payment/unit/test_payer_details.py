from datetime import date

import attrs
import pytest

from src.service.payment.domain.value_object.payer_details import PayerDetails
from src.service.shared_kernel.domain.enum import PaymentMethod


pytestmark = pytest.mark.unit

TODAY = date(2030, 6, 15)


class TestPayerDetailsValidation:
    def test_valid_card(self, card_payer):
        assert card_payer.validation_error(today=TODAY) is None
        assert card_payer.charge_source == '4242424242424242'

    @pytest.mark.parametrize(
        'changes, message',
        [
            ({'payer_name': ' '}, 'Payer name is required'),
            ({'payer_name': 'A'}, 'Payer name must be at least 2 characters'),
            ({'card_number': '4242'}, 'Card number must contain 13 to 19 digits'),
            ({'card_number': '4242-4242-4242-4242'}, 'Card number must contain 13 to 19 digits'),
            ({'cvv': '12'}, 'CVV must contain 3 or 4 digits'),
            ({'expiry_month': 'ab'}, 'Invalid expiry date format'),
            ({'expiry_year': '203'}, 'Invalid expiry date format'),
            ({'expiry_month': '13'}, 'Expiry month must be between 1 and 12'),
            ({'expiry_month': '05', 'expiry_year': '30'}, 'Card has expired'),
        ],
    )
    def test_invalid_card_details(self, card_payer, changes, message):
        assert attrs.evolve(card_payer, **changes).validation_error(today=TODAY) == message

    def test_card_valid_through_end_of_expiry_month(self, card_payer):
        payer = attrs.evolve(card_payer, expiry_month='06', expiry_year='2030')

        assert payer.validation_error(today=date(2030, 6, 30)) is None
        assert payer.validation_error(today=date(2030, 7, 1)) == 'Card has expired'

    def test_gateway_token_needs_only_token(self):
        payer = PayerDetails(
            payer_name='Ada', method=PaymentMethod.GATEWAY_TOKEN, payment_token=' pm_card_visa '
        )

        assert payer.validation_error(today=TODAY) is None
        assert payer.charge_source == 'pm_card_visa'

    def test_gateway_token_required(self):
        payer = PayerDetails(payer_name='Ada', method=PaymentMethod.GATEWAY_TOKEN)

        assert payer.validation_error(today=TODAY) == 'Payment token is required'

    def test_secrets_hidden_from_repr(self, card_payer):
        text = repr(card_payer)

        assert '4242' not in text
        assert '123' not in text
