"""webglue: small clients for undocumented web APIs.

One module per service; each exposes plain functions. The CLI lives in webglue.cli
and a Streamlit playground in ../scripts/app.py.
"""

from . import autocomplete as autocomplete
from . import cdnjs as cdnjs
from . import convertio as convertio
from . import gan as gan
from . import google_answer as google_answer
from . import google_translate as google_translate
from . import grammar as grammar
from . import html_to_pdf as html_to_pdf
from . import notion as notion
from . import pos_tagger as pos_tagger
from . import quizlet as quizlet
from . import scihub as scihub
from . import wordtune as wordtune
from .errors import (
    JobCancelled,
    JobFailed,
    JobTimeout,
    MissingCredential,
    ParseError,
    RequestFailed,
    ServiceError,
    WebglueError,
)

__version__ = "0.1.0"

__all__ = [
    "autocomplete",
    "cdnjs",
    "convertio",
    "gan",
    "google_answer",
    "google_translate",
    "grammar",
    "html_to_pdf",
    "notion",
    "pos_tagger",
    "quizlet",
    "scihub",
    "wordtune",
    "WebglueError",
    "RequestFailed",
    "ServiceError",
    "ParseError",
    "MissingCredential",
    "JobFailed",
    "JobTimeout",
    "JobCancelled",
]
