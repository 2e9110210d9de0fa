"""
Format Encoders — CSV and XML renderings of the exportable catalog.

Both encoders are pure: they take the eligible record list and return the
file body as bytes. Column order and element names are the interchange
contract with the downstream (Bitrix-compatible) importer.

CSV:
- UTF-8 with a byte-order-mark so spreadsheet tools detect the encoding
- standard quoting: fields with a comma, quote or newline are quoted and
  inner quotes doubled

XML:
- entity-escaped text, description in CDATA
- characters outside the XML 1.0 character range are dropped, so any
  user-entered text yields a well-formed document
"""

import csv
import io
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from catalog_export.export.models import CatalogRecord, ExportFormat, to_iso
from catalog_export.export.sizes import format_sizes

UTF8_BOM = "\ufeff"

CSV_HEADERS = [
    "ID",
    "Название",
    "Артикул",
    "Категория",
    "Цена (руб.)",
    "Валюта",
    "Материал",
    "Пол",
    "Сезон",
    "Описание",
    "Размеры",
    "Изображения",
    "Активен",
    "Дата создания",
    "Дата обновления",
    "URL",
]

CSV_YES = "Да"
CSV_NO = "Нет"

XML_ROOT = "products"
XML_ITEM = "product"

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

_XML_ILLEGAL_CHARS = re.compile(
    "[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


def format_price(value: Any) -> str:
    """Plain decimal without trailing zeros: 1500.00 -> "1500", 99.90 -> "99.9"."""
    if value is None or value == "":
        return "0"
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return "0"
    if not number.is_finite():
        return "0"
    normalized = number.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal(1)))
    return format(normalized, "f")


def product_url(record: CatalogRecord, site_url: str = "") -> str:
    if not record.slug:
        return ""
    return f"{site_url.rstrip('/')}/products/{record.slug}"


def _text(value: Optional[str]) -> str:
    return "" if value is None else str(value)


def _image_urls(record: CatalogRecord) -> List[str]:
    return [url for url in record.image_urls if url and url.strip()]


def csv_row(record: CatalogRecord, site_url: str = "", default_currency: str = "RUB") -> List[str]:
    """One CSV row in CSV_HEADERS order."""
    return [
        _text(record.id),
        _text(record.name),
        _text(record.article),
        _text(record.category_path),
        format_price(record.price),
        record.currency or default_currency,
        _text(record.material),
        _text(record.gender),
        _text(record.season),
        _text(record.description),
        format_sizes(record.sizes),
        ", ".join(_image_urls(record)),
        CSV_YES if record.is_active else CSV_NO,
        to_iso(record.created_at) or "",
        to_iso(record.updated_at) or "",
        product_url(record, site_url),
    ]


def encode_csv(
    records: Sequence[CatalogRecord],
    site_url: str = "",
    default_currency: str = "RUB",
) -> bytes:
    """
    Render records as a BOM-prefixed UTF-8 CSV document.

    Zero records yields the header row only.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow(csv_row(record, site_url, default_currency))

    return (UTF8_BOM + buffer.getvalue()).encode("utf-8", errors="replace")


def xml_text(value: Any) -> str:
    """Entity-escape a value for element content."""
    cleaned = _XML_ILLEGAL_CHARS.sub("", _text(value))
    return escape(cleaned, _XML_ENTITIES)


def xml_cdata(value: Any) -> str:
    """Wrap a value in CDATA, splitting any literal ']]>' across two sections."""
    cleaned = _XML_ILLEGAL_CHARS.sub("", _text(value))
    return "<![CDATA[" + cleaned.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _xml_element(name: str, content: str, indent: int = 4) -> str:
    return f"{' ' * indent}<{name}>{content}</{name}>"


def _xml_product(record: CatalogRecord, site_url: str, default_currency: str) -> Iterable[str]:
    yield f"  <{XML_ITEM}>"
    yield _xml_element("id", xml_text(record.id))
    yield _xml_element("name", xml_text(record.name))
    yield _xml_element("article", xml_text(record.article))
    yield _xml_element("category", xml_text(record.category_path))
    yield _xml_element("price", format_price(record.price))
    yield _xml_element("currency", xml_text(record.currency or default_currency))
    yield _xml_element("material", xml_text(record.material))
    yield _xml_element("gender", xml_text(record.gender))
    yield _xml_element("season", xml_text(record.season))
    yield _xml_element("description", xml_cdata(record.description))
    yield _xml_element("sizes", xml_text(format_sizes(record.sizes)))
    yield _xml_element("isActive", "true" if record.is_active else "false")
    yield _xml_element("createdAt", xml_text(to_iso(record.created_at)))
    yield _xml_element("updatedAt", xml_text(to_iso(record.updated_at)))
    yield _xml_element("url", xml_text(product_url(record, site_url)))
    yield "    <images>"
    for image_url in _image_urls(record):
        yield _xml_element("image", xml_text(image_url), indent=6)
    yield "    </images>"
    yield f"  </{XML_ITEM}>"


def encode_xml(
    records: Sequence[CatalogRecord],
    site_url: str = "",
    default_currency: str = "RUB",
) -> bytes:
    """
    Render records as a UTF-8 XML document.

    Zero records yields an empty root element.
    """
    lines = ['<?xml version="1.0" encoding="UTF-8"?>']

    if not records:
        lines.append(f"<{XML_ROOT}/>")
    else:
        lines.append(f"<{XML_ROOT}>")
        for record in records:
            lines.extend(_xml_product(record, site_url, default_currency))
        lines.append(f"</{XML_ROOT}>")

    return ("\n".join(lines) + "\n").encode("utf-8")


def encode(
    fmt: ExportFormat,
    records: Sequence[CatalogRecord],
    site_url: str = "",
    default_currency: str = "RUB",
) -> bytes:
    """Dispatch to the encoder for `fmt`."""
    if fmt is ExportFormat.CSV:
        return encode_csv(records, site_url, default_currency)
    return encode_xml(records, site_url, default_currency)
