"""
Tokenizer engines - chuyen raw text thanh danh sach token co thu tu.

Moi engine chi can implement mot ham `tokenize(text) -> List[str]`
(structural typing qua TokenizerEngine Protocol), khong can ke thua.

Hop dong chung cho moi engine:
- Input rong / chi co whitespace -> []
- Giu nguyen thu tu xuat hien, khong bao gio tra ve token rong
- KHONG raise exception: input loi chi cho ra it token hon
- Pure function: cung input -> cung output

Punctuation policy: dau cau va ky hieu duoc tach thanh token rieng
("你好，world" -> ["你好", "，", "world"]), whitespace bi bo qua.
"""

import logging
import re
import threading
from enum import Enum
from typing import List, Optional, Protocol, runtime_checkable

import jieba

from config.paths import DEBUG_MODE
from core.logging_config import log_info, log_warning


@runtime_checkable
class TokenizerEngine(Protocol):
    """Capability interface: text -> ordered token sequence."""

    def tokenize(self, text: str) -> List[str]: ...


class EngineOption(str, Enum):
    """Cac engine co the chon trong UI."""

    SYSTEM = "system"
    SIMPLE = "simple"
    REMOTE = "remote"

    @property
    def display_name(self) -> str:
        return _ENGINE_DISPLAY_NAMES[self]

    @property
    def is_available(self) -> bool:
        return self is not EngineOption.REMOTE


_ENGINE_DISPLAY_NAMES = {
    EngineOption.SYSTEM: "Default segmenter (jieba)",
    EngineOption.SIMPLE: "Simple regex segmenter",
    EngineOption.REMOTE: "Remote service (planned)",
}


class EngineUnavailableError(Exception):
    """Engine duoc chon chua kha dung."""

    def __init__(self, option: EngineOption):
        self.option = option
        super().__init__(f"Tokenizer engine '{option.value}' is not available yet")


# CJK Unified Ideographs (+ Extension A, Compatibility Ideographs)
_CJK = "\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"

# Thu tu alternation quan trong: CJK truoc, vi \w cung match chu Han
_SIMPLE_TOKEN_RE = re.compile(
    rf"[{_CJK}]+"  # Run chu Han
    rf"|[^\W{_CJK}]+"  # Tu Latin / so / chu co dau
    r"|[^\w\s\x00-\x1f\x7f]"  # Dau cau / ky hieu don le (bo control chars)
)
_CJK_RUN_RE = re.compile(rf"[{_CJK}]+")


class SimpleTokenizerEngine:
    """
    Regex segmenter khong can dictionary.

    Chu Han lien tiep duoc gop thanh mot token, nen do chinh xac
    tieng Trung thap hon DefaultTokenizerEngine. Dung lam fallback.
    """

    def tokenize(self, text: str) -> List[str]:
        if not text or text.isspace():
            return []
        return _SIMPLE_TOKEN_RE.findall(text)


class DefaultTokenizerEngine:
    """
    Word-level segmenter cho text tron Trung/Anh: run chu Han delegate
    sang jieba, tu Latin / so / dau cau tach nhu SimpleTokenizerEngine.

    jieba load prefix dictionary lazily o lan cut dau tien (~1s),
    goi initialize() tren background thread de warm up truoc.
    """

    def __init__(self, user_dict_path: Optional[str] = None) -> None:
        """
        Args:
            user_dict_path: Duong dan user dictionary cho jieba (optional)
        """
        if not DEBUG_MODE:
            jieba.setLogLevel(logging.WARNING)

        self._segmenter = jieba.Tokenizer()
        self._user_dict_path = user_dict_path or None
        self._fallback = SimpleTokenizerEngine()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._using_fallback = False

    def initialize(self) -> None:
        """Load dictionary (+ user dictionary neu co). Goi nhieu lan khong sao."""
        if self._initialized:
            return

        with self._init_lock:
            if self._initialized:
                return

            self._segmenter.initialize()
            if self._user_dict_path:
                try:
                    self._segmenter.load_userdict(self._user_dict_path)
                    log_info(
                        f"[TokenizerEngine] Loaded user dictionary: {self._user_dict_path}"
                    )
                except OSError as e:
                    log_warning(
                        f"[TokenizerEngine] Khong load duoc user dictionary "
                        f"{self._user_dict_path}: {e}"
                    )
            self._initialized = True

    def tokenize(self, text: str) -> List[str]:
        if not text or text.isspace():
            return []

        try:
            self.initialize()
            pieces = self._segment(text)
        except Exception as e:
            # Segmenter loi -> fallback regex, canh bao mot lan
            if not self._using_fallback:
                log_warning(
                    f"[TokenizerEngine] jieba segmentation failed ({e}), "
                    f"dang dung simple segmenter."
                )
                self._using_fallback = True
            return self._fallback.tokenize(text)

        return [token for token in map(str.strip, pieces) if _is_visible(token)]

    def _segment(self, text: str) -> List[str]:
        """
        Chi dua run chu Han cho jieba. Phan con lai tach bang regex,
        vi jieba cat tu co dau / Cyrillic / fullwidth thanh tung ky tu.
        """
        pieces: List[str] = []
        for token in _SIMPLE_TOKEN_RE.findall(text):
            if _CJK_RUN_RE.fullmatch(token):
                pieces.extend(self._segmenter.lcut(token))
            else:
                pieces.append(token)
        return pieces


def _is_visible(token: str) -> bool:
    """Token rong hoac chi gom control chars (binary input) bi loai."""
    return any(not _CONTROL_RE.match(ch) for ch in token)


_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def create_engine(
    option: EngineOption = EngineOption.SYSTEM,
    user_dict_path: Optional[str] = None,
) -> TokenizerEngine:
    """
    Factory tao engine theo option.

    Raises:
        EngineUnavailableError: Khi option chua kha dung (vd: remote)
    """
    option = EngineOption(option)
    if not option.is_available:
        raise EngineUnavailableError(option)
    if option is EngineOption.SIMPLE:
        return SimpleTokenizerEngine()
    return DefaultTokenizerEngine(user_dict_path=user_dict_path)
