"""
Keyword table and token categories for the LOLCODE front end.

This module is the single source of truth for token categories and their
canonical surface spelling. The lexer consults it for longest-match
recognition of multi-word keywords, the parser for its operator and type
groupings, and diagnostics/emitters for rendering keywords exactly as users
write them.

Exports:
    keyword_table: Ordered, read-only mapping of category -> canonical text.
        Literal and structural categories map to the empty string.
    token_hashmap: Canonical keyword text -> category.
    keyword_phrases: Keyword word tuples, longest first.
    LITERAL_TYPES: Categories carrying a literal payload.
    unary_ops, binary_ops, nary_ops: Operator category -> operation name.
    type_keywords: Type keyword category -> type name.
    describe(): Human readable spelling of a category for error messages.

Example:
    >>> keyword_table["ISNOWA"]
    'IS NOW A'
    >>> token_hashmap["IM OUTTA YR"]
    'IMOUTTAYR'
"""

from collections.abc import Mapping
from types import MappingProxyType

keyword_table: Mapping[str, str] = MappingProxyType(
    {
        "INTEGER": "",
        "FLOAT": "",
        "STRING": "",
        "IDENTIFIER": "",
        "BOOLEAN": "",
        "IT": "IT",
        "ITZLIEKA": "ITZ LIEK A",
        "NOOB": "NOOB",
        "NUMBR": "NUMBR",
        "NUMBAR": "NUMBAR",
        "TROOF": "TROOF",
        "YARN": "YARN",
        "BUKKIT": "BUKKIT",
        "EOF": "",
        "NEWLINE": "",
        "HAI": "HAI",
        "KTHXBYE": "KTHXBYE",
        "HASA": "HAS A",
        "ITZA": "ITZ A",
        "ITZ": "ITZ",
        "RNOOB": "R NOOB",
        "R": "R",
        "ANYR": "AN YR",
        "AN": "AN",
        "SUMOF": "SUM OF",
        "DIFFOF": "DIFF OF",
        "PRODUKTOF": "PRODUKT OF",
        "QUOSHUNTOF": "QUOSHUNT OF",
        "MODOF": "MOD OF",
        "BIGGROF": "BIGGR OF",
        "SMALLROF": "SMALLR OF",
        "BOTHOF": "BOTH OF",
        "EITHEROF": "EITHER OF",
        "WONOF": "WON OF",
        "NOT": "NOT",
        "MKAY": "MKAY",
        "ALLOF": "ALL OF",
        "ANYOF": "ANY OF",
        "BOTHSAEM": "BOTH SAEM",
        "DIFFRINT": "DIFFRINT",
        "MAEK": "MAEK",
        "A": "A",
        "ISNOWA": "IS NOW A",
        "VISIBLE": "VISIBLE",
        "SMOOSH": "SMOOSH",
        "BANG": "!",
        "GIMMEH": "GIMMEH",
        "ORLY": "O RLY?",
        "YARLY": "YA RLY",
        "MEBBE": "MEBBE",
        "NOWAI": "NO WAI",
        "OIC": "OIC",
        "WTF": "WTF?",
        "OMG": "OMG",
        "OMGWTF": "OMGWTF",
        "GTFO": "GTFO",
        "IMINYR": "IM IN YR",
        "UPPIN": "UPPIN",
        "NERFIN": "NERFIN",
        "YR": "YR",
        "TIL": "TIL",
        "WILE": "WILE",
        "IMOUTTAYR": "IM OUTTA YR",
        "HOWIZ": "HOW IZ",
        "IZ": "IZ",
        "IFUSAYSO": "IF U SAY SO",
        "FOUNDYR": "FOUND YR",
        "SRS": "SRS",
        "APOSTROPHEZ": "'Z",
        "OHAIIM": "O HAI IM",
        "IMLIEK": "IM LIEK",
        "KTHX": "KTHX",
    }
)

token_hashmap: dict[str, str] = {
    text: category for category, text in keyword_table.items() if text
}

keyword_phrases: tuple[tuple[str, ...], ...] = tuple(
    sorted(
        (tuple(text.split(" ")) for text in token_hashmap),
        key=len,
        reverse=True,
    )
)

LITERAL_TYPES: frozenset[str] = frozenset(
    {"INTEGER", "FLOAT", "STRING", "IDENTIFIER", "BOOLEAN"}
)

BOOLEAN_LITERALS: Mapping[str, bool] = MappingProxyType({"WIN": True, "FAIL": False})

# TOKEN MAPPINGS (PARSER)

unary_ops: Mapping[str, str] = MappingProxyType({"NOT": "NOT"})

binary_ops: Mapping[str, str] = MappingProxyType(
    {
        "SUMOF": "ADD",
        "DIFFOF": "SUB",
        "PRODUKTOF": "MULT",
        "QUOSHUNTOF": "DIV",
        "MODOF": "MOD",
        "BIGGROF": "MAX",
        "SMALLROF": "MIN",
        "BOTHOF": "AND",
        "EITHEROF": "OR",
        "WONOF": "XOR",
        "BOTHSAEM": "EQ",
        "DIFFRINT": "NEQ",
    }
)

nary_ops: Mapping[str, str] = MappingProxyType(
    {"ALLOF": "AND", "ANYOF": "OR", "SMOOSH": "CAT"}
)

type_keywords: Mapping[str, str] = MappingProxyType(
    {
        "NOOB": "NIL",
        "TROOF": "BOOLEAN",
        "NUMBR": "INTEGER",
        "NUMBAR": "FLOAT",
        "YARN": "STRING",
    }
)

_descriptions: Mapping[str, str] = MappingProxyType(
    {
        "INTEGER": "integer",
        "FLOAT": "float",
        "STRING": "string",
        "IDENTIFIER": "identifier",
        "BOOLEAN": "boolean",
        "EOF": "end of file",
        "NEWLINE": "end of line",
    }
)


def describe(category: str) -> str:
    """Return the spelling of a token category used in diagnostics.

    Keywords render with their canonical text; literal and structural
    categories render as a readable class name.

    Args:
        category (str): A token category from `keyword_table`.

    Returns:
        str: The canonical keyword text, a class name, or the category itself
        when it is unknown.
    """
    text = keyword_table.get(category)
    if text:
        return text
    return _descriptions.get(category, category)


__all__ = [
    "BOOLEAN_LITERALS",
    "LITERAL_TYPES",
    "binary_ops",
    "describe",
    "keyword_phrases",
    "keyword_table",
    "nary_ops",
    "token_hashmap",
    "type_keywords",
    "unary_ops",
]
