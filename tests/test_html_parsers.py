"""Tests for the HTML vendor parsers, using trimmed copies of real layouts."""

from __future__ import annotations

import pytest

from frame_intake.core.interfaces import ParseFailure
from frame_intake.core.models import InboundMessage
from frame_intake.parsers import (
    ClearVisionParser,
    EuropaParser,
    IdealOpticsParser,
    KenmarkParser,
    LamyAmericaParser,
    LuxotticaParser,
    MarchonParser,
    ModernOpticalParser,
)
from frame_intake.parsers.clearvision import split_description
from frame_intake.parsers.luxottica import normalize_brand
from frame_intake.parsers.marchon import brand_for_model, product_params
from frame_intake.parsers.modern_optical import normalize_color


def _html(html: str, subject: str | None = None) -> InboundMessage:
    return InboundMessage(sender=None, subject=subject, text=None, html=html)


LUXOTTICA_HTML = """
<html><body><pre>
Cart number: 1234567<br>
Order date: 2024-03-05<br>
Customer Reference: SUNNY OPTICS<br>
Customer code: 0012345<br>
Agent reference: John Smith (778)<br>
Payment terms: NET 60<br>
Promo code: 4455<br>
<font size="5">RAYBAN (2)</font>
<font size="5">0RB2140 - WAYFARER (2)</font>
901 - BLACK<br>
50 8053672000000 USD 98.50 1 2024-03-10<br>
54 8053672000001 USD 98.50 1 2024-03-10<br>
<font size="5">OAKLEY (1)</font>
<font size="5">0OX8046 (1)</font>
804602 - SATIN BLACK<br>
55 0888392000000 USD 110.00 1 2024-03-12<br>
Total Number of Items: 3<br>
Total: 307.00 USD<br>
</pre></body></html>
"""


def test_luxottica_parser_reads_brand_model_and_colour_sections() -> None:
    order = LuxotticaParser().parse(_html(LUXOTTICA_HTML))

    assert order.order_number == "1234567"
    assert order.order_date == "2024-03-05"
    assert order.account_number == "0012345"
    assert order.customer_name == "SUNNY OPTICS"
    assert order.placed_by == "John Smith"
    assert order.metadata["rep_code"] == "778"
    assert order.metadata["payment_terms"] == "NET 60"
    assert order.metadata["total_value"] == 307.0
    assert len(order.items) == 3

    first, second, third = order.items
    assert (first.brand, first.model, first.color_code, first.color) == (
        "Ray-Ban",
        "0RB2140",
        "901",
        "BLACK",
    )
    assert first.eye_size == "50"
    assert first.upc == "8053672000000"
    assert first.wholesale_price == 98.5
    assert first.sku == "Ray-Ban-0RB2140-901-50"
    assert second.eye_size == "54"
    assert third.brand == "Oakley"
    assert third.model == "0OX8046"
    assert third.color == "SATIN BLACK"


def test_luxottica_without_sections_fails() -> None:
    with pytest.raises(ParseFailure):
        LuxotticaParser().parse(_html("<pre>Cart number: 1</pre>"))


def test_luxottica_brand_normalisation() -> None:
    assert normalize_brand("DOLCE E GABBANA") == "Dolce & Gabbana"
    assert normalize_brand("PRADA  LINEA ROSSA") == "Prada Linea Rossa"


MODERN_OPTICAL_HTML = """
<h3>Customer</h3><p>BRIGHT EYES OPTICAL (12345)</p>
<p>Order Number: 556677</p>
<p>Date: 03/01/2024</p>
<p>Placed By Rep: Dana Smith</p>
<table>
<thead><tr><th>Image</th><th>Model</th><th>Color</th><th>Size</th><th>Qty</th></tr></thead>
<tbody>
<tr><td><img src="a.jpg"></td><td>Modern Times - Avid</td><td>BLK/GM</td><td>52-18-140</td><td>2</td></tr>
<tr><td></td><td>B.M.E.C. - BIG SMOOTH</td><td>TORT</td><td>58</td><td>1</td></tr>
</tbody>
</table>
<p>Total Pieces: 3</p>
"""


def test_modern_optical_parser() -> None:
    order = ModernOpticalParser().parse(_html(MODERN_OPTICAL_HTML))

    assert order.order_number == "556677"
    assert order.order_date == "2024-03-01"
    assert order.customer_name == "BRIGHT EYES OPTICAL"
    assert order.account_number == "12345"
    assert order.placed_by == "Dana Smith"
    assert order.total_pieces == 3
    first, second = order.items
    assert (first.brand, first.model) == ("Modern Times", "Avid")
    assert first.color == "Black/Gunmetal"
    assert first.color_code == "BLK/GM"
    assert (first.eye_size, first.bridge, first.temple) == ("52", "18", "140")
    assert first.sku == "Modern_Times-Avid-BLK_GM"
    assert second.color == "Tortoise"
    assert second.size == "58"


def test_modern_optical_requires_item_rows() -> None:
    with pytest.raises(ParseFailure):
        ModernOpticalParser().parse(_html("<p>Order Number: 1</p>"))


def test_normalize_color_expands_each_word() -> None:
    assert normalize_color("blk/gm fade") == "Black/Gunmetal Fade"
    assert normalize_color("Matte Olive") == "Matte Olive"
    assert normalize_color(None) is None


KENMARK_HTML = """
<p>Receipt for Order Number: 889900</p>
<p>Date: 04/02/2024</p>
<h3>Customer</h3><p>SUNNY OPTICS (1234567)<br>Phone: 555-123-4567</p>
<h3>Ship To</h3><p>SUNNY OPTICS WEST</p>
<p>Placed By Rep: Pat Rep</p>
<table><tbody>
<tr><td>Image</td><td>Model</td><td>Color</td><td>Size</td><td>Qty</td></tr>
<tr>
  <td><img src="https://imageserver.jiecosystem.net/image/kenmark/886533123456"></td>
  <td>Kenmark - KM 210</td><td>BLK Black Matte</td><td>52</td><td>2</td>
</tr>
<tr><td></td><td>Lilly Pulitzer - Mabry</td><td>Tortoise</td><td>50-17-140</td><td>1</td></tr>
</tbody></table>
"""


def test_kenmark_parser_reads_upc_from_image_url() -> None:
    order = KenmarkParser().parse(_html(KENMARK_HTML))

    assert order.vendor_code == "kenmark"
    assert order.order_number == "889900"
    assert order.order_date == "2024-04-02"
    assert order.customer_name == "SUNNY OPTICS"
    assert order.account_number == "1234567"
    assert order.placed_by == "Pat Rep"
    assert order.metadata["ship_to"] == "SUNNY OPTICS WEST"
    assert order.metadata["customer_phone"] == "555-123-4567"
    first, second = order.items
    assert (first.brand, first.model, first.color_code, first.color) == (
        "Kenmark",
        "KM 210",
        "BLK",
        "Black Matte",
    )
    assert first.upc == "886533123456"
    assert first.eye_size == "52"
    assert first.quantity == 2
    assert second.brand == "Lilly Pulitzer"
    assert second.color_code is None
    assert second.upc is None
    assert second.eye_size == "50"


LAMY_HTML = """
<p>EyeRep Order Number: 445566</p>
<p>Date: 04/03/2024</p>
<h3>Customer</h3><p>CITY VISION (LAM12345)</p>
<table><tbody>
<tr>
  <td><img src="https://nam02.safelinks.protection.outlook.com/?url=https%3A%2F%2Fimageserver.jiecosystem.net%2Fimage%2Flamy%2F0123456789012&amp;data=x"></td>
  <td>Champion - CU4001</td><td>C01 Black</td><td>54-17-140</td><td>1</td>
</tr>
</tbody></table>
"""


def test_lamy_parser_unwraps_protected_image_links() -> None:
    order = LamyAmericaParser().parse(_html(LAMY_HTML))

    assert order.order_number == "445566"
    assert order.account_number == "LAM12345"
    assert order.customer_name == "CITY VISION"
    (item,) = order.items
    assert item.brand == "Champion"
    assert item.color_code == "C01"
    assert item.upc == "0123456789012"


MARCHON_ROW = (
    '<tr><td><a href="https://www.marchon.com/product?frame=CK20512&amp;coll=CK'
    '&amp;pickColor=001&amp;pickSize=5218">img</a></td>'
    "<td>CK20512 BLACK<br>(52 eye)</td><td>2</td></tr>"
)
MARCHON_HTML = f"""
<p>Order ID: MA12345</p>
<p>DATE: 2024-05-01</p>
<p>Customer:</p><p>SUNNY OPTICS (445566)</p>
<p>SALES REP: Lee Rep</p>
<p>Terms Requested: 60 days</p>
<table>
<tr bgcolor="#B2B4B2"><td>Style</td><td>Description</td><td>Qty</td></tr>
{MARCHON_ROW}
<tr><td><a href="https://www.marchon.com/product?frame=NK7040&amp;pickColor=210">img</a></td>
<td>NK7040 TORTOISE (54 eye)</td><td>1</td></tr>
<tr><td></td><td>SF2000 GOLD (55 eye)</td><td>0</td></tr>
{MARCHON_ROW}
</table>
"""


def test_marchon_parser_dedupes_and_reads_product_links() -> None:
    order = MarchonParser().parse(_html(MARCHON_HTML))

    assert order.order_number == "MA12345"
    assert order.order_date == "2024-05-01"
    assert order.customer_name == "SUNNY OPTICS"
    assert order.account_number == "445566"
    assert order.placed_by == "Lee Rep"
    assert order.metadata["terms"] == "60 days"
    assert len(order.items) == 2
    first, second = order.items
    assert (first.brand, first.model, first.color, first.color_code) == (
        "Calvin Klein",
        "CK20512",
        "BLACK",
        "001",
    )
    assert (first.eye_size, first.bridge) == ("52", "18")
    assert first.quantity == 2
    assert second.brand == "Nike"
    assert second.eye_size == "54"
    assert second.color_code == "210"


def test_marchon_helpers() -> None:
    assert brand_for_model("CKJ123") == "Calvin Klein Jeans"
    assert brand_for_model("C5000") == "Columbia"
    assert brand_for_model("ZZ100") == "Marchon"
    assert product_params("https://x.test/p?frame=A1&pickSize=5016&other=1") == {
        "frame": "A1",
        "pickSize": "5016",
    }
    assert product_params(None) == {}


IDEAL_HTML = """
<table>
<tr><td>Web Order #:</td><td>W-1001</td></tr>
<tr><td>Order Date:</td><td>06/10/2024</td></tr>
<tr><td>Ordered By:</td><td>Kim Buyer</td></tr>
<tr><td>Purchase Order:</td><td>PO-9</td></tr>
<tr><td>Ship Method:</td><td>UPS Ground</td></tr>
</table>
<table>
<tr><td>Account Information</td></tr>
<tr><td><strong>Account</strong></td><td><strong>Contact Name</strong></td></tr>
<tr><td>ID4455</td><td>Sunny Optics</td></tr>
</table>
<table>
<tr><td class="x_secondaryheader">Style Name</td><td>Color</td><td>Size</td><td>Qty</td></tr>
<tr><td>Jasper</td><td>Black Fade</td><td>52-17-140</td><td>2</td></tr>
<tr><td>Total Quantity</td><td></td><td></td><td>2</td></tr>
</table>
"""


def test_ideal_optics_parser() -> None:
    order = IdealOpticsParser().parse(_html(IDEAL_HTML))

    assert order.order_number == "W-1001"
    assert order.order_date == "2024-06-10"
    assert order.placed_by == "Kim Buyer"
    assert order.account_number == "ID4455"
    assert order.customer_name == "Sunny Optics"
    assert order.metadata["purchase_order"] == "PO-9"
    assert order.metadata["ship_method"] == "UPS Ground"
    (item,) = order.items
    assert item.brand == "Ideal Optics"
    assert item.model == "Jasper"
    assert item.sku == "Jasper-Black-Fade-52-17-140"
    assert item.quantity == 2


def test_ideal_optics_requires_style_table() -> None:
    with pytest.raises(ParseFailure):
        IdealOpticsParser().parse(_html("<table><tr><td>Web Order #:</td><td>1</td></tr></table>"))


EUROPA_HTML = """
<p>Order #: 334455</p>
<p>Date: 07/01/2024</p>
<p>Order Placed By Rep: Sam Rep</p>
<p>Terms: Net 30</p>
<table>
<tr><td>Customer</td></tr>
<tr><td class="header">Account</td><td>Name</td><td>Street</td><td>City</td>
<td>State</td><td>Zip</td><td>Phone</td><td>Email</td></tr>
<tr><td>E1001</td><td>Sunny Optics</td><td>1 Main St</td><td>Springfield</td>
<td>IL</td><td>62701</td><td>555-0100</td><td>buyer@sunny.test</td></tr>
</table>
<table>
<tr><td>Ship Address</td></tr>
<tr><td>Sunny West</td><td>2 Elm St</td><td>Springfield</td><td>IL</td><td>62702</td><td>US</td></tr>
</table>
<table>
<tr><td>Order Items</td></tr>
<tr><td class="header">Type</td><td>Model</td><td>Color</td><td>Size</td><td>Qty</td><td>Availability</td></tr>
<tr><td>Stock</td><td>Cinzia - CIN-5012</td><td>1 Black</td><td>52-17-140</td><td>2</td><td>In Stock</td></tr>
<tr><td>Stock</td><td>Scott Harris - SH-600</td><td>3 Tortoise</td><td>54-18-145</td><td>1</td>
<td>Back-Ordered</td></tr>
<tr><td colspan="6">Displays</td></tr>
<tr><td>POP</td><td>Displays / POP</td><td>n/a</td><td></td><td>1</td><td></td></tr>
</table>
"""


def test_europa_parser() -> None:
    order = EuropaParser().parse(_html(EUROPA_HTML))

    assert order.order_number == "334455"
    assert order.order_date == "2024-07-01"
    assert order.account_number == "E1001"
    assert order.customer_name == "Sunny Optics"
    assert order.placed_by == "Sam Rep"
    assert order.metadata["terms"] == "Net 30"
    assert order.metadata["ship_to"] == "Sunny West"
    first, second = order.items
    assert (first.brand, first.model, first.color_code, first.color) == (
        "Cinzia",
        "CIN-5012",
        "1",
        "Black",
    )
    assert first.in_stock is True
    assert second.brand == "Scott Harris"
    assert second.in_stock is False


CLEARVISION_HTML = """
<p>Order Reference #: 778899</p>
<p>Date: 08/01/2024</p>
<p>Customer ID: 5566</p>
<p>Customer: Sunny Optics</p>
<p>Territory: 12</p>
<p>Terms: Net 60</p>
<p>Ship Via: UPS</p>
<table>
<tr><th>#</th><th>Image</th><th>SKU</th><th>Model</th><th>Description</th><th>Qty</th><th>List Price</th></tr>
<tr><td>1</td><td></td><td>ADVMT69GUN5417</td><td>MT69</td>
<td>ADV MT69 GUNMETAL MATTE/GREEN 54/17/145</td><td>2</td><td>$45.00</td></tr>
<tr><td>2</td><td></td><td>IZX2001BLK</td><td>2001</td><td>BLACK 55/18/140</td><td>1</td><td>$50.00</td></tr>
</table>
"""


def test_clearvision_parser() -> None:
    order = ClearVisionParser().parse(
        _html(CLEARVISION_HTML, subject="Lee Rep - New CVOGo Order 778899")
    )

    assert order.order_number == "778899"
    assert order.order_date == "2024-08-01"
    assert order.account_number == "5566"
    assert order.customer_name == "Sunny Optics"
    assert order.placed_by == "Lee Rep"
    assert order.metadata["territory"] == "12"
    assert order.metadata["ship_via"] == "UPS"
    first, second = order.items
    assert (first.brand, first.model, first.color) == ("Advantage", "MT69", "GUNMETAL MATTE/GREEN")
    assert (first.eye_size, first.bridge, first.temple) == ("54", "17", "145")
    assert first.wholesale_price == 45.0
    assert first.sku == "ADVMT69GUN5417"
    assert second.brand == "Izod Xtreme"
    assert second.color == "BLACK"


def test_clearvision_split_description_without_size() -> None:
    assert split_description("JM 1234 ROSE", "1234") == ("Jessica McClintock", "ROSE", None)
