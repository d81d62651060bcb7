"""
HMAC signing for cart links and forms.

Methods are named after what is being signed, so application code reads
naturally: ``foxy.hmac_sign.url("https://...")`` signs a URL,
``foxy.hmac_sign.html_string(page)`` signs every cart link and cart form
of an HTML page.

Signatures are HMAC-SHA256 hex digests of the product code, the parent
product code, the field name and the field value. Fields whose value is
left for the buyer to fill in are signed as "open".

See https://wiki.foxycart.com/v/2.0/hmac_validation
"""

import hashlib
import hmac
import re
from collections import namedtuple
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Doctype, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .constants import MULTIPLE_CODES_DOCS, OPEN_MARKER, OPEN_SENTINEL, SIGNATURE_SEPARATOR
from .exceptions import ConfigurationError, InvalidURLError, SigningAmbiguityError
from .log import create_logger

# Two pipes followed by a SHA256 hex digest
_SIGNATURE = re.compile(r"\|\|[0-9a-fA-F]{64}")
_ENDS_WITH_CODE = re.compile(r"code$")
_CODE_NAME = re.compile(r"(?:(\d{1,3}):)?code")

# Leave void elements unclosed and only escape what HTML requires
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


class _Doctype(Doctype):
    """Doctype printed without the newline bs4 appends after it."""
    SUFFIX = ">"


CodeEntry = namedtuple('CodeEntry', ['code', 'parent_code'])


@dataclass(frozen=True)
class Fixed:
    """A field value fixed by the merchant."""
    value: str


class _Editable:
    """A field value left for the buyer to enter."""

    def __repr__(self):
        return 'EDITABLE'


EDITABLE = _Editable()

FieldValue = Union[Fixed, _Editable]


def field_value(value: Union[str, int, float, None]) -> FieldValue:
    """Classify a raw value. ``None`` and ``""`` are editable, ``0`` is not."""
    if value is None or value == "":
        return EDITABLE
    return Fixed(str(value))


def _hash_input(value: FieldValue) -> str:
    return OPEN_SENTINEL if value is EDITABLE else value.value


def _encode_component(text: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(text, safe="!*'()")


def _replace_url_chars(url: str) -> str:
    """Undo the escaping of signature delimiters and plus signs."""
    return url.replace("%7C", "|").replace("%3D", "=").replace("%2B", "+")


def split_name_prefix(name: str) -> Tuple[int, str]:
    """
    Split a ``{n}:{field}`` name into its product prefix and field name.

    The prefix lets a single request carry several products; names without
    one belong to product 0.
    """
    parts = name.split(":")
    if len(parts) == 2 and parts[0].isdigit():
        return int(parts[0]), parts[1]
    return 0, name


def build_signed_name(name: str, signature: str, value: FieldValue) -> str:
    open_marker = OPEN_MARKER if value is EDITABLE else ""
    return f"{name}{SIGNATURE_SEPARATOR}{signature}{open_marker}"


def build_signed_value(signature: str, value: FieldValue) -> str:
    shown = OPEN_MARKER if value is EDITABLE else value.value
    return f"{shown}{SIGNATURE_SEPARATOR}{signature}"


def build_signed_query_arg(name: str, signature: str, value: str, open: bool = False) -> str:
    open_marker = OPEN_MARKER if open else ""
    return f"{name}{SIGNATURE_SEPARATOR}{signature}{open_marker}={value}"


class FoxySigner:
    """
    HMAC signer for cart links, forms and whole pages.

    The secret is the integration's client secret. It can be given to the
    constructor or set later with :meth:`set_secret`; nothing can be signed
    without it. Warnings go to ``logger``, the owning client's logger when
    the signer comes from ``FoxyApi.hmac_sign``.
    """

    def __init__(self, secret: Optional[str] = None, logger=None):
        self.secret = None
        self.logger = logger if logger is not None else create_logger(component="signer")
        if secret:
            self.set_secret(secret)

    def set_secret(self, secret: str) -> 'FoxySigner':
        """Set the HMAC secret and return the signer."""
        self.secret = secret
        return self

    def message(self, message: str) -> str:
        """
        Sign a plain message.

        Args:
            message: Text to sign

        Returns:
            Lowercase hex-encoded HMAC-SHA256 of the UTF-8 message

        Raises:
            ConfigurationError: If no secret has been set
        """
        if self.secret is None:
            raise ConfigurationError("No secret was provided to build the hmac")

        mac = hmac.new(
            self.secret.encode('utf-8'),
            message.encode('utf-8'),
            hashlib.sha256
        )
        return mac.hexdigest()

    def _product(self, code: str, name: str, value: FieldValue) -> str:
        return self.message(code + name + _hash_input(value))

    def name(self, name: str, code: str, parent_code: str = "", value=None) -> str:
        """
        Sign an input name.

        Args:
            name: Name of the input element
            code: Product code
            parent_code: Parent product code, empty when there is none
            value: Input value, empty or None when the buyer fills it in

        Returns:
            ``{name}||{signature}``, followed by ``||open`` for editable values
        """
        name = name.replace(" ", "_")
        value = field_value(value)
        signature = self._product(code + parent_code, name, value)
        return build_signed_name(_encode_component(name), signature, value)

    def value(self, name: str, code: str, parent_code: str = "", value=None) -> str:
        """
        Sign an input value.

        Used for options and radio buttons, whose signature lives in the
        value attribute. Arguments are the same as for :meth:`name`.

        Returns:
            ``{value}||{signature}``, or ``||open||{signature}`` for editable values
        """
        name = name.replace(" ", "_")
        value = field_value(value)
        signature = self._product(code + parent_code, name, value)
        return build_signed_value(signature, value)

    def query_arg(self, name: str, code: str, value: Optional[str] = None) -> str:
        """Sign a single query argument as ``{name}||{signature}={value}``."""
        name = name.replace(" ", "_")
        code = code.replace(" ", "_")
        value = field_value(value)
        signature = self._product(code, name, value)
        encoded_name = _encode_component(name).replace("%20", "+")
        encoded_value = _encode_component(_hash_input(value)).replace("%20", "+")
        return build_signed_query_arg(encoded_name, signature, encoded_value)

    def url(self, url: str) -> str:
        """
        Sign every query argument of a cart URL.

        URLs without a non-empty ``code`` parameter are returned unchanged,
        and so are URLs that already carry a signature.

        Args:
            url: Absolute URL including the query string

        Returns:
            The URL with each query argument replaced by its signed form

        Raises:
            InvalidURLError: If ``url`` is not an absolute URL
        """
        if _SIGNATURE.search(url):
            self.logger.warning("attempt to sign a signed URL", url=url)
            return url

        parts = self._split_absolute(url)
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        code = next((v for k, v in pairs if k == "code"), None)
        if not code:
            return url

        query = "&".join(self.query_arg(k, code, v) for k, v in pairs)
        path = parts.path
        if not path and parts.scheme in ("http", "https"):
            path = "/"
        signed = urlunsplit((parts.scheme, parts.netloc, path, query, parts.fragment))
        return _replace_url_chars(signed)

    def fragment(self, doc: Tag) -> Tag:
        """
        Sign a parsed document in place.

        Every link with a ``code`` query parameter and every form with a
        code input is signed. Links whose href is not an absolute URL are
        skipped.

        Args:
            doc: BeautifulSoup document or tag

        Returns:
            The same document

        Raises:
            SigningAmbiguityError: If a form holds several unprefixed codes
        """
        for link in doc.find_all("a", href=True):
            try:
                signed = self.url(link["href"])
            except InvalidURLError:
                continue
            if signed != link["href"]:
                link["href"] = signed

        for form in self._find_cart_forms(doc):
            self._form(form)
        return doc

    def html_string(self, html: str) -> str:
        """Sign an HTML snippet or page and return the signed HTML."""
        doc = BeautifulSoup(html, "html.parser")
        for node in list(doc.contents):
            if isinstance(node, Doctype):
                node.replace_with(_Doctype(node))
        self.fragment(doc)
        return doc.decode(formatter=_FORMATTER)

    def html_file(self, input_path: str, output_path: str) -> str:
        """
        Sign an HTML file.

        Args:
            input_path: File to sign
            output_path: File where the signed result is written

        Returns:
            The signed HTML
        """
        with open(input_path, encoding='utf-8') as fh:
            signed = self.html_string(fh.read())
        with open(output_path, 'w', encoding='utf-8') as fh:
            fh.write(signed)
        return signed

    def _split_absolute(self, url: str):
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise InvalidURLError(f"Invalid URL: {url}") from e
        if not parts.scheme or not parts.netloc:
            raise InvalidURLError(f"Invalid URL: {url}")
        return parts

    def _find_cart_forms(self, doc: Tag):
        return [f for f in doc.find_all("form") if f.find(attrs={"name": _ENDS_WITH_CODE})]

    def _collect_codes(self, form: Tag) -> Dict[int, CodeEntry]:
        """Map each product prefix of a form to its code and parent code."""
        codes: Dict[int, CodeEntry] = {}
        for node in form.find_all(attrs={"name": _ENDS_WITH_CODE}):
            match = _CODE_NAME.fullmatch(node["name"])
            if not match:
                continue
            code = node.get("value") or ""
            prefix = match.group(1)
            if prefix is not None:
                codes[int(prefix)] = CodeEntry(code, self._retrieve_parent_code(form, prefix))
            elif 0 not in codes:
                codes[0] = CodeEntry(code, self._retrieve_parent_code(form))
            else:
                raise SigningAmbiguityError(
                    f"There are multiple codes in the form element. Please, check {MULTIPLE_CODES_DOCS}"
                )
        return codes

    def _retrieve_parent_code(self, form: Tag, prefix: Optional[str] = None) -> str:
        """Parent code for a product prefix; empty means no parent."""
        name = f"{prefix}:parent_code" if prefix is not None else "parent_code"
        node = form.find(attrs={"name": name})
        if node is None:
            return ""
        return node.get("value") or ""

    def _form(self, form: Tag):
        """Sign the inputs, selects and textareas of a cart form."""
        codes = self._collect_codes(form)

        for el in form.find_all("input", attrs={"name": True}):
            if (el.get("type") or "").lower() == "radio":
                self._option(el, el["name"], codes)
            else:
                self._input(el, codes)

        for select in form.find_all("select", attrs={"name": True}):
            for option in select.find_all("option"):
                self._option(option, select["name"], codes)

        for el in form.find_all("textarea", attrs={"name": True}):
            self._textarea(el, codes)

    def _lookup(self, field: str, codes: Dict[int, CodeEntry]):
        prefix, name = split_name_prefix(field)
        entry = codes.get(prefix)
        if entry is None:
            self.logger.warning("no product code for field", field=field)
        return prefix, name, entry

    def _input(self, el: Tag, codes: Dict[int, CodeEntry]):
        prefix, name, entry = self._lookup(el["name"], codes)
        if entry is None:
            return
        signed = self.name(name, entry.code, entry.parent_code, el.get("value"))
        el["name"] = f"{prefix}:{signed}"

    def _textarea(self, el: Tag, codes: Dict[int, CodeEntry]):
        # Textarea content is always buyer input
        prefix, name, entry = self._lookup(el["name"], codes)
        if entry is None:
            return
        signed = self.name(name, entry.code, entry.parent_code, "")
        el["name"] = f"{prefix}:{signed}"

    def _option(self, el: Tag, field: str, codes: Dict[int, CodeEntry]):
        """Sign an option or a radio button through its value attribute."""
        prefix, name, entry = self._lookup(field, codes)
        if entry is None:
            return
        value = el.get("value")
        if value is None:
            # Browsers submit "on" for radios without a value
            value = " ".join(el.get_text().split()) if el.name == "option" else "on"
        signed = self.value(name, entry.code, entry.parent_code, value)
        el["value"] = f"{prefix}:{signed}"
