"""
Unit tests for HMAC signing of cart links, forms and pages.
"""

import hashlib
import hmac
import json
import re

import pytest
from bs4 import BeautifulSoup

from foxy_client import ConfigurationError, FoxySigner, InvalidURLError, SigningAmbiguityError
from foxy_client.log import create_logger
from foxy_client.signer import (
    EDITABLE,
    Fixed,
    build_signed_query_arg,
    field_value,
    split_name_prefix,
)

LINKS_HTML = """
<p>Here is a fragment of HTML</p>
<section id="itsComplex">
<div class="test">
<a id="linktobesigned" href="http://storename?code=ABC123&name=name&value=My Example Product">Here is the link</a>
</div>
<a id="plain" href="http://example.com">This is a common example</a>
<a id="relative" href="/cart?code=ABC123&name=name">Relative link</a>
</section>
"""

FORMS_HTML = """<!DOCTYPE html>
<html><head><title>Shop</title></head><body>
<form id="cart" action="https://example.foxycart.com/cart" method="post">
  <input type="hidden" name="1:code" value="abc123">
  <input type="hidden" name="1:name" value="T-Shirt">
  <input type="hidden" name="1:price" value="10">
  <select name="1:size">
    <option value="small{p-2}">Small</option>
    <option value="medium">Medium</option>
    <option>Large</option>
  </select>
  <input type="text" name="1:color">
  <input type="hidden" name="2:code" value="abc124">
  <input type="hidden" name="2:parent_code" value="abc123">
  <input type="hidden" name="2:name" value="Different T-Shirt">
  <input type="radio" name="2:shipping" value="express">
  <textarea name="2:additional-details">Write here</textarea>
  <input type="text" name="honeypot">
</form>
<form id="newsletter"><input type="email" name="honeypot"></form>
</body></html>
"""


def sig(message, secret="1"):
    """Reference HMAC-SHA256 hex digest."""
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class TestFoxySigner:
    """Test signing primitives."""

    @pytest.fixture
    def signer(self):
        return FoxySigner("1")

    def test_message(self, signer):
        """Test signing a plain message."""
        assert signer.message("My secret message") == (
            "070273763c37748d6da8ef8dde7ef847857c4d61a7016244df0b2843dbf417aa"
        )

    def test_message_store_secret(self):
        """Test signing with a store secret containing spaces and quotes."""
        signer = FoxySigner("Your store's secret key.")

        assert signer.message("My secret message") == (
            "107366608bb74161b5c679fa4f9f0149eafa340574b60ef75a2e4fa26e103497"
        )

    def test_no_secret(self):
        """Test that signing requires a secret."""
        with pytest.raises(ConfigurationError):
            FoxySigner().message("http://signthis")

        with pytest.raises(ConfigurationError):
            FoxySigner("").name("name", "ABC123")

    def test_set_secret(self):
        """Test setting the secret after construction."""
        signer = FoxySigner()

        assert signer.set_secret("1") is signer
        assert signer.message("My secret message").startswith("070273763c")

    def test_name(self, signer):
        """Test signing an input name."""
        assert signer.name("name", "ABC123", "", "My Example Product") == (
            "name||dbaa042ec8018e342058417e058d7a479226976c7cb287664197fd67970c4715"
        )
        assert signer.name("name", "ABC123", "", 100) == (
            "name||bd87a3e47a20a60c9c5d7d2a026605310f20753b80535e56336cfd5502f61143"
        )

    def test_name_editable(self, signer):
        """Test signing an input name the buyer fills in."""
        expected = "name||3f2075135e3455131bd0d6ce8643551e9e2e43bc09dd0474fa3effbe4e588c9e||open"

        assert signer.name("name", "ABC123", "") == expected
        assert signer.name("name", "ABC123", "", "") == expected

    def test_name_zero_is_fixed(self, signer):
        """Test that zero is a value, not an open field."""
        assert signer.name("qty", "ABC123", "", 0) == (
            "qty||1a28794ad69fd85f263d6feb3b9cbc47e4e9235729ce15dd1faae83fc22f0c9a"
        )

    def test_name_with_spaces(self, signer):
        """Test that spaces in names become underscores before signing."""
        assert signer.name("other atribute", "mycode", "", "Some Other Thing") == (
            "other_atribute||" + sig("mycodeother_atributeSome Other Thing")
        )

    def test_value_editable(self, signer):
        """Test signing a value the buyer fills in."""
        expected = "||open||3f2075135e3455131bd0d6ce8643551e9e2e43bc09dd0474fa3effbe4e588c9e"

        assert signer.value("name", "ABC123", "") == expected
        assert signer.value("name", "ABC123") == expected

    def test_value(self, signer):
        """Test that signed values put the value before the signature."""
        assert signer.value("size", "abc123", "", "medium") == (
            "medium||" + sig("abc123sizemedium")
        )

    def test_bundled_product(self, signer):
        """Test that parent codes are part of the signature."""
        assert signer.name("name", "abc124", "abc123", "Different T-Shirt") == (
            "name||ca2df56d0a72b3637b688d519939f7f00551f054cede1e35aa57602201e2b75f"
        )

    def test_query_arg(self, signer):
        """Test signing a single query argument."""
        assert signer.query_arg("name", "ABC123", "My Example Product") == (
            "name||dbaa042ec8018e342058417e058d7a479226976c7cb287664197fd67970c4715=My+Example+Product"
        )

    def test_build_signed_query_arg_open(self):
        """Test placement of the open marker."""
        assert build_signed_query_arg("name", "sig", "value", True) == "name||sig||open=value"
        assert build_signed_query_arg("name", "sig", "value") == "name||sig=value"


class TestURLSigning:
    """Test signing of cart URLs."""

    @pytest.fixture
    def signer(self):
        return FoxySigner("1")

    def test_url(self, signer):
        """Test signing every argument of a URL."""
        url = "http://mockdomain.mock/?code=mycode&name=testname&price=123.00&other atribute=Some Other Thing"
        signed = (
            "http://mockdomain.mock/?"
            "code||43f429e41303929871266b879a880efce32b35bda757e70f527bc5c8e1353c0a=mycode&"
            "name||07f23df6159ba32f01de36db07bf998d7661bda812a7c0d597cfacdefe0f0064=testname&"
            "price||aed2692b1b278b04b974c3c9822e597dc5da880561cf256ab20b2873a5346b66=123.00&"
            "other_atribute||98700cf679c5d7394e3e33b883f18683664b4843707f916a0739ba1c9adeabab=Some+Other+Thing"
        )

        assert signer.url(url) == signed

    def test_url_adds_root_path(self, signer):
        """Test that a bare origin gets a root path."""
        signed = signer.url("http://storename?code=ABC123")

        assert signed.startswith("http://storename/?code||")

    def test_url_is_not_signed_twice(self, signer):
        """Test that signing a signed URL returns it unchanged."""
        signed = signer.url("http://storename?code=ABC123&name=name&value=My Example Product")

        assert signer.url(signed) == signed

    def test_signed_url_warning(self, capsys):
        """Test that re-signing is reported through the signer's logger."""
        signer = FoxySigner("1", logger=create_logger(level="warn", json_output=True))
        signed = signer.url("http://storename/?code=ABC123")
        signer.url(signed)

        assert json.loads(capsys.readouterr().out)["event"] == "attempt to sign a signed URL"

    def test_default_logger_is_quiet(self, capsys, signer):
        """Test that a standalone signer only reports errors."""
        signer.url(signer.url("http://storename/?code=ABC123"))

        assert capsys.readouterr().out == ""

    def test_url_without_code(self, signer):
        """Test that URLs without a code are left alone."""
        url = "http://test.com?nothing=0&else=0"

        assert signer.url(url) == url

    def test_url_with_empty_code(self, signer):
        """Test that an empty code does not turn the product into an open field."""
        url = "http://storename/?code=&name=x"

        assert signer.url(url) == url
        doc = signer.fragment(BeautifulSoup(f'<a href="{url}">Buy</a>', "html.parser"))
        assert doc.a["href"] == url

    def test_url_invalid(self, signer):
        """Test that non-absolute URLs are rejected."""
        with pytest.raises(InvalidURLError):
            signer.url('<div><a href="what://code=test" >Click to buy</a></div>')

        with pytest.raises(InvalidURLError):
            signer.url("/cart?code=ABC123")

    def test_url_escapes_delimiters(self, signer):
        """Test that pipes, equals and plus signs stay readable."""
        signed = signer.url("http://store.test/cart?code=A1&name=a=b+c")

        assert "=a=b+c" in signed
        assert "%3D" not in signed and "%2B" not in signed


class TestDocumentSigning:
    """Test signing of HTML fragments, strings and files."""

    @pytest.fixture
    def signer(self):
        return FoxySigner("1")

    @pytest.fixture
    def signed_forms(self, signer):
        return BeautifulSoup(signer.html_string(FORMS_HTML), "html.parser")

    def test_fragment_links(self, signer):
        """Test that links with a code are signed and others are not."""
        doc = signer.fragment(BeautifulSoup(LINKS_HTML, "html.parser"))

        assert doc.find(id="linktobesigned")["href"] == (
            "http://storename/?"
            "code||376d15f565ec374d45571878a14d3f5a705c7ea6b9aea42c1e1b3a39ac1ba7f8=ABC123&"
            "name||a0db12544b12078e411f2bb388c470bf099a14b21035d782ecb1bd5bef89a0e0=name&"
            "value||dd47bac2aeb87bd6c118d3f89797ab6eddb058ce17a1e302233ba7a00e7b4db4=My+Example+Product"
        )
        assert doc.find(id="plain")["href"] == "http://example.com"
        assert doc.find(id="relative")["href"] == "/cart?code=ABC123&name=name"

    def test_form_fixed_fields(self, signed_forms):
        """Test hidden inputs of each product."""
        names = [i["name"] for i in signed_forms.find_all("input")]

        assert "1:code||994c9d5de25038f8df71248c3465f7fb4f1d73141ad7334e52285ab4bedc2c5e" in names
        assert "1:name||bac8da945de49c0b3a125755663614c80c4d7dd5c92e5e142d75c3f14abdf233" in names
        assert "1:price||c3d3283aa5dc88e228ad984b2e696919925b5476869d2e4658a3a4285b479f62" in names
        assert "2:code||c6fab7653e95c6a7b223026a2c48d77168a522f1db26fa38bd87b32e498315cc" in names
        assert "2:parent_code||1def6647af1e60a114feeb1c35ef237ee53b6acac00f433b1b35035099cd5f44" in names

    def test_form_bundled_product(self, signed_forms):
        """Test that the child product is signed with its parent code."""
        el = signed_forms.find("input", value="Different T-Shirt")

        assert el["name"] == "2:name||ca2df56d0a72b3637b688d519939f7f00551f054cede1e35aa57602201e2b75f"

    def test_form_editable_fields(self, signed_forms):
        """Test that empty inputs and textareas are signed as open."""
        color = signed_forms.find("input", type="text", attrs={"name": re.compile("color")})
        details = signed_forms.find("textarea")

        assert color["name"] == "1:color||82ba9fc18d18c421f7e43f9443afbe730852b7b6751482407f6b2d549dd939d7||open"
        assert details["name"] == (
            "2:additional-details||3be40b0b72ae8dfdba23f2daf75a1d14b3eba77e4382c7f774cfc0453c4b80e3||open"
        )
        assert details.get_text() == "Write here"

    def test_form_options(self, signed_forms):
        """Test that options carry their signature in the value."""
        values = [o["value"] for o in signed_forms.find_all("option")]

        assert values == [
            "1:small{p-2}||119fc3e542e479803612be0f2e9735e603ba9bbce8210ecc05dd716b19bfeb82",
            "1:medium||" + sig("abc123sizemedium"),
            "1:Large||bf32a88cc4e0c2681b661719a7d8c7242ea7848c831a435b6827ccd6f747cab9",
        ]
        assert signed_forms.find("select")["name"] == "1:size"

    def test_form_radio(self, signed_forms):
        """Test that radio buttons are signed through their value."""
        radio = signed_forms.find("input", type="radio")

        assert radio["name"] == "2:shipping"
        assert radio["value"] == "2:express||733737e428834f9efbe991ca0087e732328a6fd2cffa8f7ed2a081292fd93233"

    def test_radio_without_value(self, signer):
        """Test that a radio without a value is signed with the value browsers submit."""
        html = '<form><input name="code" value="A1"><input type="radio" name="gift"></form>'
        doc = BeautifulSoup(signer.html_string(html), "html.parser")

        assert doc.find("input", type="radio")["value"] == "0:on||" + sig("A1gifton")

    def test_fields_without_product_untouched(self, signed_forms):
        """Test that fields outside any product and forms without a code are left alone."""
        assert len(signed_forms.find_all("input", attrs={"name": "honeypot"})) == 2

    def test_prefixes_preserved(self, signed_forms):
        """Test that every product keeps its fields."""
        before = BeautifulSoup(FORMS_HTML, "html.parser")

        for prefix in ("1:", "2:"):
            count_before = len(before.find_all(attrs={"name": re.compile("^" + prefix)}))
            count_after = len(signed_forms.find_all(attrs={"name": re.compile("^" + prefix)}))
            assert count_before == count_after

    def test_parent_code_can_be_missing(self, signer):
        """Test that an empty parent code means no parent."""
        html = """
        <form>
        <input name="code" value="test">
        <input name="parent_code" >
        </form>
        """
        signed = signer.html_string(html)

        assert "0:code||3ce339bde0689065ad4f18698603d5f957581bc8ef819e1a6d5a11ddefddc46a" in signed

    def test_multiple_codes(self, signer):
        """Test that several unprefixed codes in a form are rejected."""
        html = """<html><head></head><body><h1>Test form</h1>
           <form>
           <input name="code" value="test">
           <input name="code" value="test2">
           </form>
           </body></html>"""

        with pytest.raises(SigningAmbiguityError):
            signer.html_string(html)

    @pytest.mark.parametrize("html", [
        "<html><head></head><body><h1>Test form</h1><div><p>There is no form to be found here</p></div></body></html>",
        """<html><head></head><body><h1>Test
    form</h1><div><form>There is no code to be found here
    <input name="test" type="text"></form></div></body></html>""",
        "<!DOCTYPE html><html><head></head><body><p>Nothing to sign</p></body></html>",
        "<!DOCTYPE html>\n<html><head></head><body><p>Nothing to sign</p></body></html>\n",
    ])
    def test_documents_without_cart_elements(self, signer, html):
        """Test that documents with nothing to sign come back unchanged."""
        assert signer.html_string(html) == html

    def test_html_file(self, signer, tmp_path):
        """Test signing a file into another file."""
        source = tmp_path / "page.html"
        target = tmp_path / "signed.html"
        source.write_text(FORMS_HTML, encoding='utf-8')

        signed = signer.html_file(str(source), str(target))

        assert target.read_text(encoding='utf-8') == signed
        assert "2:name||ca2df56d0a72b3637b688d519939f7f00551f054cede1e35aa57602201e2b75f" in signed

    def test_html_file_unwritable(self, signer, tmp_path):
        """Test that write errors propagate."""
        source = tmp_path / "page.html"
        source.write_text(FORMS_HTML, encoding='utf-8')

        with pytest.raises(OSError):
            signer.html_file(str(source), str(tmp_path / "missing" / "signed.html"))


class TestFieldValues:
    """Test field value helpers."""

    def test_field_value(self):
        """Test editable and fixed values."""
        assert field_value(None) is EDITABLE
        assert field_value("") is EDITABLE
        assert field_value(0) == Fixed("0")
        assert field_value("--OPEN--") == Fixed("--OPEN--")

    def test_split_name_prefix(self):
        """Test product prefix parsing."""
        assert split_name_prefix("1:name") == (1, "name")
        assert split_name_prefix("name") == (0, "name")
        assert split_name_prefix("a:b") == (0, "a:b")
