"""
PIX payment payloads (EMVCo merchant-presented QR code, BR Code subset)

The payload is a flat sequence of TLV fields: a 2-digit tag, a 2-digit
zero-padded decimal length and the value. Templates (26, 62) nest TLV
fields inside their value. The last field (63) carries a CRC16 over the
whole payload, including the "6304" header of the CRC field itself.
"""

import re
import secrets
import string
import time
import unicodedata
from decimal import Decimal
from typing import Optional, Union

import structlog

from cantina.money import round_money

logger = structlog.get_logger()

PIX_GUI = "br.gov.bcb.pix"
MERCHANT_CATEGORY_CODE = "0000"
CURRENCY_BRL = "986"
COUNTRY_CODE = "BR"
CRC_HEADER = "6304"

MERCHANT_NAME_MAX = 25
MERCHANT_CITY_MAX = 15

CRC_POLYNOMIAL = 0x1021
CRC_INITIAL = 0xFFFF

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
_BASE36 = string.digits + string.ascii_uppercase


def tlv(tag: str, value: str) -> str:
    """Encode one field: tag + 2-digit length + value"""
    if len(value) > 99:
        raise ValueError(f"Field {tag} is too long ({len(value)} chars)")
    return f"{tag}{len(value):02d}{value}"


def crc16_ccitt(data: Union[str, bytes]) -> int:
    """
    CRC16-CCITT, polynomial 0x1021, initial value 0xFFFF, processed bit by
    bit MSB first; the result is XORed with 0xFFFF.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    crc = CRC_INITIAL
    for byte in data:
        for j in range(8):
            bit = (byte >> (7 - j)) & 1
            c15 = (crc >> 15) & 1
            crc = (crc << 1) & 0xFFFF
            if c15 != bit:
                crc ^= CRC_POLYNOMIAL

    return crc ^ 0xFFFF


def generate_transaction_id() -> str:
    """CANTINA + epoch millis + 7 random base36 chars"""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"CANTINA{int(time.time() * 1000)}{suffix}"


def _ascii(value: str, limit: int) -> str:
    # Length prefixes count characters, so keep the text single-byte
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return folded.strip()[:limit]


def generate_payload(
    pix_key: str,
    description: str,
    merchant_name: str,
    merchant_city: str,
    amount: Optional[Union[Decimal, str, float]] = None,
    transaction_id: Optional[str] = None,
) -> str:
    """
    Build the PIX "copy and paste" payload.

    The amount field (54) is emitted with exactly two decimals, and only
    when an amount is given and is non-zero. ``description`` is not part of
    the encoded payload; it is only recorded in the log.
    """
    merchant_account = tlv("00", PIX_GUI) + tlv("01", pix_key)

    fields = [
        tlv("00", "01"),
        tlv("26", merchant_account),
        tlv("52", MERCHANT_CATEGORY_CODE),
        tlv("53", CURRENCY_BRL),
    ]

    if amount:
        value = round_money(amount)
        if value:
            fields.append(tlv("54", f"{value:.2f}"))

    txid = transaction_id or generate_transaction_id()

    fields += [
        tlv("58", COUNTRY_CODE),
        tlv("59", _ascii(merchant_name, MERCHANT_NAME_MAX)),
        tlv("60", _ascii(merchant_city, MERCHANT_CITY_MAX)),
        tlv("62", tlv("05", txid)),
    ]

    payload = "".join(fields) + CRC_HEADER
    crc = crc16_ccitt(payload)

    logger.debug("PIX payload built", description=description, transaction_id=txid)
    return f"{payload}{crc:04X}"


def validate_cpf(cpf: str) -> bool:
    numbers = re.sub(r"\D", "", cpf)
    if len(numbers) != 11:
        return False

    # 000.000.000-00, 111.111.111-11, ... pass the checksum but are invalid
    if len(set(numbers)) == 1:
        return False

    digits = [int(n) for n in numbers]
    for position in (9, 10):
        total = sum(d * w for d, w in zip(digits[:position], range(position + 1, 1, -1)))
        remainder = total % 11
        check = 0 if remainder < 2 else 11 - remainder
        if check != digits[position]:
            return False

    return True


def validate_cnpj(cnpj: str) -> bool:
    numbers = re.sub(r"\D", "", cnpj)
    if len(numbers) != 14:
        return False

    if len(set(numbers)) == 1:
        return False

    digits = [int(n) for n in numbers]
    weights = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    for position, w in ((12, weights), (13, [6] + weights)):
        total = sum(d * k for d, k in zip(digits[:position], w))
        remainder = total % 11
        check = 0 if remainder < 2 else 11 - remainder
        if check != digits[position]:
            return False

    return True


def validate_pix_key(key: str) -> bool:
    """
    Check the shape of a PIX key: email, CPF, CNPJ, phone or random (UUID).

    CPF and CNPJ keys must also pass their check digits.
    """
    clean = re.sub(r"\s+", "", key or "")

    if "@" in clean:
        return bool(_EMAIL_RE.match(clean))

    if re.fullmatch(r"\d{11}", clean):
        return validate_cpf(clean)

    if re.fullmatch(r"\d{14}", clean):
        return validate_cnpj(clean)

    if re.fullmatch(r"\d{10,11}", clean):
        return True

    if _UUID_RE.match(clean):
        return True

    return False
