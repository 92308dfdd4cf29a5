"""Tests for the PIX payload encoder, key validation and order charges"""

import re
from decimal import Decimal
from uuid import uuid4

import pytest

from cantina.config import Settings
from cantina.errors import BadRequestError, ConfigurationError, InvalidStateError, NotFoundError
from cantina.models.order import PaymentMethod, PaymentStatus
from cantina.pix import (
    crc16_ccitt,
    generate_payload,
    generate_transaction_id,
    tlv,
    validate_cnpj,
    validate_cpf,
    validate_pix_key,
)
from cantina.services import orders as order_service
from cantina.services import payments as payment_service
from cantina.services.charges import build_order_charge


def parse_fields(payload: str) -> dict:
    """Split a flat TLV string into {tag: value}"""
    fields = {}
    position = 0
    while position < len(payload):
        tag = payload[position:position + 2]
        length = int(payload[position + 2:position + 4])
        fields[tag] = payload[position + 4:position + 4 + length]
        position += 4 + length
    return fields


def build(amount=None, **overrides):
    params = dict(
        pix_key="11144477735",
        description="Pedido #1",
        merchant_name="Cantina Salete",
        merchant_city="Sao Paulo",
        amount=amount,
        transaction_id="CANTINATEST",
    )
    params.update(overrides)
    return generate_payload(**params)


def test_tlv_encodes_length_as_two_digits():
    assert tlv("58", "BR") == "5802BR"
    assert tlv("00", "") == "0000"


def test_tlv_rejects_values_over_99_chars():
    with pytest.raises(ValueError):
        tlv("26", "x" * 100)


def test_crc16_check_value():
    assert crc16_ccitt("123456789") == 0xD64E
    assert crc16_ccitt(b"123456789") == 0xD64E


def test_payload_crc_covers_everything_before_it():
    payload = build(Decimal("18.00"))

    assert payload[-8:-4] == "6304"
    assert re.fullmatch(r"[0-9A-F]{4}", payload[-4:])
    assert int(payload[-4:], 16) == crc16_ccitt(payload[:-4])


def test_payload_fields():
    fields = parse_fields(build(Decimal("18.00"))[:-8])

    assert fields["00"] == "01"
    assert parse_fields(fields["26"]) == {"00": "br.gov.bcb.pix", "01": "11144477735"}
    assert fields["52"] == "0000"
    assert fields["53"] == "986"
    assert fields["58"] == "BR"
    assert fields["59"] == "Cantina Salete"
    assert fields["60"] == "Sao Paulo"
    assert parse_fields(fields["62"]) == {"05": "CANTINATEST"}


@pytest.mark.parametrize("amount", [Decimal("18.00"), Decimal("18"), "18.00", 18])
def test_amount_always_has_two_decimals(amount):
    fields = parse_fields(build(amount)[:-8])
    assert fields["54"] == "18.00"


@pytest.mark.parametrize("amount", [None, 0, Decimal("0.00")])
def test_amount_field_omitted_without_amount(amount):
    fields = parse_fields(build(amount)[:-8])
    assert "54" not in fields


def test_merchant_name_and_city_folded_and_truncated():
    payload = build(merchant_name="Lanchonete São João da Boa Vista", merchant_city="São José dos Campos")
    fields = parse_fields(payload[:-8])

    assert fields["59"] == "Lanchonete Sao Joao da Bo"
    assert len(fields["59"]) == 25
    assert fields["60"] == "Sao Jose dos Ca"


def test_description_is_not_encoded():
    payload = build(description="Pedido especial XYZ")
    assert "XYZ" not in payload


def test_generated_transaction_id_format():
    txid = generate_transaction_id()
    assert re.fullmatch(r"CANTINA\d{13}[0-9A-Z]{7}", txid)
    assert generate_transaction_id() != txid


def test_payload_generates_transaction_id_when_missing():
    fields = parse_fields(build(transaction_id=None)[:-8])
    assert parse_fields(fields["62"])["05"].startswith("CANTINA")


class TestKeyValidation:
    def test_cpf(self):
        assert validate_cpf("111.444.777-35")
        assert not validate_cpf("11144477730")
        assert not validate_cpf("11111111111")
        assert not validate_cpf("123")

    def test_cnpj(self):
        assert validate_cnpj("11.222.333/0001-81")
        assert not validate_cnpj("11222333000180")
        assert not validate_cnpj("00000000000000")

    @pytest.mark.parametrize(
        "key",
        [
            "11144477735",
            "111 444 777 35",
            "11222333000181",
            "cantina@example.com",
            "1199990000",
            "123e4567-e89b-12d3-a456-426614174000",
            "123E4567-E89B-12D3-A456-426614174000",
        ],
    )
    def test_valid_keys(self, key):
        assert validate_pix_key(key)

    @pytest.mark.parametrize(
        "key",
        ["", "a@b", "11111111111", "11222333000180", "123456789", "not-a-key"],
    )
    def test_invalid_keys(self, key):
        assert not validate_pix_key(key)


class TestOrderCharge:
    settings = Settings(pix_key="11144477735")

    async def test_amount_comes_from_stored_order(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.PIX, total="18.00")

        payload, charged = await build_order_charge(test_db, order.id, settings=self.settings)
        fields = parse_fields(payload[:-8])

        assert charged.id == order.id
        assert fields["54"] == "18.00"
        assert parse_fields(fields["62"])["05"] == f"ORDER{order.id.hex[:20].upper()}"

    async def test_unknown_order(self, test_db):
        with pytest.raises(NotFoundError):
            await build_order_charge(test_db, uuid4(), settings=self.settings)

    async def test_missing_key(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.PIX)

        with pytest.raises(ConfigurationError):
            await build_order_charge(test_db, order.id, settings=Settings(pix_key=""))

    async def test_invalid_key_is_not_leaked(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.PIX)

        with pytest.raises(ConfigurationError) as exc_info:
            await build_order_charge(test_db, order.id, settings=Settings(pix_key="secret-bad-key"))
        assert "secret-bad-key" not in exc_info.value.message

    async def test_zero_amount_rejected(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.PIX, total="0.00")

        with pytest.raises(BadRequestError):
            await build_order_charge(test_db, order.id, settings=self.settings)

    async def test_cancelled_order_rejected(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.PIX)
        await order_service.cancel_order(test_db, order.id)

        with pytest.raises(InvalidStateError):
            await build_order_charge(test_db, order.id, settings=self.settings)

    async def test_order_paid_by_other_method_rejected(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.CASH)
        await payment_service.update_payment_status(test_db, order.id, PaymentStatus.PAID)

        with pytest.raises(InvalidStateError):
            await build_order_charge(test_db, order.id, settings=self.settings)

    async def test_paid_pix_order_still_renders(self, test_db, test_customer, place_order):
        order = await place_order(test_customer, PaymentMethod.PIX)
        await payment_service.update_payment_status(test_db, order.id, PaymentStatus.PAID)

        payload, _ = await build_order_charge(test_db, order.id, settings=self.settings)
        assert parse_fields(payload[:-8])["54"] == "11.00"
