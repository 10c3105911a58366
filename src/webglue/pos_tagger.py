"""
Parts-of-speech tagging through parts-of-speech.info.

The tagger answers {"taggedText": "The_DT cat_NN sat_VBD"}; each token is the word,
an underscore, and a Penn Treebank tag.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel

from . import _http
from ._schema import parse_as

SERVICE = "pos"
TAGGER_URL = "https://parts-of-speech.info/tagger/tagger"

TAG_DESCRIPTIONS: Dict[str, str] = {
    "CC": "coordinating conjunction",
    "CD": "cardinal number",
    "DT": "determiner",
    "EX": "existential there",
    "FW": "foreign word",
    "IN": "preposition or subordinating conjunction",
    "JJ": "adjective",
    "JJR": "adjective, comparative",
    "JJS": "adjective, superlative",
    "LS": "list item marker",
    "MD": "modal",
    "NN": "noun, singular or mass",
    "NNS": "noun, plural",
    "NNP": "proper noun, singular",
    "NNPS": "proper noun, plural",
    "PDT": "predeterminer",
    "POS": "possessive ending",
    "PRP": "personal pronoun",
    "PRP$": "possessive pronoun",
    "RB": "adverb",
    "RBR": "adverb, comparative",
    "RBS": "adverb, superlative",
    "RP": "particle",
    "SYM": "symbol",
    "TO": "to",
    "UH": "interjection",
    "VB": "verb, base form",
    "VBD": "verb, past tense",
    "VBG": "verb, gerund or present participle",
    "VBN": "verb, past participle",
    "VBP": "verb, non-3rd person singular present",
    "VBZ": "verb, 3rd person singular present",
    "WDT": "wh-determiner",
    "WP": "wh-pronoun",
    "WP$": "possessive wh-pronoun",
    "WRB": "wh-adverb",
}


class TaggedWord(BaseModel):
    word: str
    tag: str

    @property
    def description(self) -> Optional[str]:
        return TAG_DESCRIPTIONS.get(self.tag)


class _TaggerResponse(BaseModel):
    taggedText: str


def parse_tagged_text(tagged: str) -> List[TaggedWord]:
    words: List[TaggedWord] = []
    for token in tagged.split():
        word, sep, tag = token.rpartition("_")
        if not sep or not word or not tag:
            continue
        words.append(TaggedWord(word=word, tag=tag))
    return words


def tag_parts_of_speech(text: str, *, language: str = "en") -> List[TaggedWord]:
    if not text.strip():
        return []
    data = _http.get_json(TAGGER_URL, service=SERVICE, params={"text": text, "language": language})
    return parse_tagged_text(parse_as(_TaggerResponse, data, SERVICE).taggedText)
