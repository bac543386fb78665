"""Shared test fixtures for all test modules."""

import pytest

from editguard.canon.extractor import extract_canon_from_draft
from editguard.canon.locks import apply_canon_locks


PLAIN_DRAFT = """Bạn đã bao giờ mất cả buổi sáng chỉ để tìm một file cũ?

Ứng dụng ghi chú của chúng tôi tự động sắp xếp tài liệu theo dự án.

Tìm kiếm toàn văn giúp bạn mở đúng tài liệu chỉ trong vài giây.

Inbox ngay để nhận bản dùng thử miễn phí 👇"""

MARKED_DRAFT = """## Hook
Ra mắt bộ sưu tập mùa thu

## Body
Chất liệu len mềm, giữ ấm tốt.

- Màu be
- Màu nâu

## CTA
Đặt hàng ngay hôm nay!"""

ENGLISH_DRAFT = """Our new planner keeps every project in one place.

Tasks sync across devices so your team always sees the latest plan.

Reports show progress at a glance for every stakeholder."""


@pytest.fixture
def plain_draft() -> str:
    """Vietnamese draft without section markers (hook, two body paragraphs, CTA)."""
    return PLAIN_DRAFT


@pytest.fixture
def marked_draft() -> str:
    """Draft using ## Hook / ## Body / ## CTA markers."""
    return MARKED_DRAFT


@pytest.fixture
def english_draft() -> str:
    """Three-paragraph English draft with no CTA."""
    return ENGLISH_DRAFT


@pytest.fixture
def plain_canon():
    """Canon of PLAIN_DRAFT with the default lock policy applied."""
    return apply_canon_locks(extract_canon_from_draft(PLAIN_DRAFT, "draft-vi"), "default")


@pytest.fixture
def english_canon():
    """Canon of ENGLISH_DRAFT with the default lock policy applied."""
    return apply_canon_locks(extract_canon_from_draft(ENGLISH_DRAFT, "draft-en"), "default")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep log files and default config lookups out of the real home directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path
