"""
Unit tests for avatar assignment.
"""
import pytest

from signal_scout.scout.avatar_assigner import (
    assign_avatars,
    avatar_pool_for_body_fallback,
    build_avatar_debug,
    is_body_fallback,
    parse_all_img_urls,
    parse_avatar_from_block,
)
from signal_scout.scout.roster import drafts_from_response, normalize_roster
from signal_scout.scout.types import AvatarFallbackStrategy, CandidateBlock, ScanResult


def _marked(url: str, text: str) -> CandidateBlock:
    return CandidateBlock(text=f"[HAS_IMAGE_URL: {url}] {text}", image_url=url)


def _oversized_block_with_imgs() -> CandidateBlock:
    filler = "Our crew has decades of experience in live events. " * 90
    imgs = "".join(f'<img src="https://cdn.io/200/p{i}.jpg">' for i in range(4))
    return CandidateBlock(text=f"{imgs} {filler}")


class TestParsing:

    @pytest.mark.unit
    def test_marker_parsed(self):
        assert parse_avatar_from_block("[HAS_IMAGE_URL: https://a.io/x.jpg] Jane") == "https://a.io/x.jpg"

    @pytest.mark.unit
    def test_protocol_relative_marker(self):
        assert parse_avatar_from_block("[HAS_IMAGE_URL: //cdn.a.io/x.jpg] Jane") == "https://cdn.a.io/x.jpg"

    @pytest.mark.unit
    def test_inline_img_in_small_block(self):
        assert parse_avatar_from_block('<img src="https://a.io/y.png"> Jane') == "https://a.io/y.png"

    @pytest.mark.unit
    def test_inline_img_ignored_in_oversized_block(self):
        assert parse_avatar_from_block(_oversized_block_with_imgs().text) is None

    @pytest.mark.unit
    def test_relative_inline_img_rejected(self):
        assert parse_avatar_from_block('<img src="/y.png"> Jane') is None

    @pytest.mark.unit
    def test_all_img_urls_only_for_long_blocks(self):
        assert parse_all_img_urls('<img src="https://a.io/1.jpg">') == []
        assert len(parse_all_img_urls(_oversized_block_with_imgs().text)) == 4


class TestBodyFallbackDetection:

    @pytest.mark.unit
    def test_single_oversized_block_without_markers(self):
        assert is_body_fallback([_oversized_block_with_imgs()]) is True

    @pytest.mark.unit
    def test_from_body_block(self):
        assert is_body_fallback([CandidateBlock(text="short body text", from_body=True)]) is True

    @pytest.mark.unit
    def test_marked_block_is_structured(self):
        assert is_body_fallback([_marked("https://a.io/x.jpg", "Jane Carter CEO")]) is False

    @pytest.mark.unit
    def test_many_blocks_are_structured(self):
        blocks = [CandidateBlock(text="Jane Carter CEO"), CandidateBlock(text="Omar Haddad COO")]
        assert is_body_fallback(blocks) is False


class TestAssignment:

    @pytest.mark.unit
    def test_structured_blocks_use_agent_copy_or_block_marker(self):
        scan = ScanResult(blocks=[
            _marked("https://a.io/jane.jpg", "Jane Carter CEO"),
            _marked("https://a.io/omar.jpg", "Omar Haddad COO"),
            CandidateBlock(text="Lee Park Designer"),
        ])
        drafts = drafts_from_response({"roster": [
            {"firstName": "Jane", "avatarUrl": "https://a.io/jane.jpg"},
            {"firstName": "Omar", "avatarUrl": None},
            {"firstName": "Lee"},
        ]})

        assert assign_avatars(scan, drafts) == [
            "https://a.io/jane.jpg",
            "https://a.io/omar.jpg",
            None,
        ]

    @pytest.mark.unit
    def test_invented_agent_avatar_rejected(self):
        scan = ScanResult(blocks=[
            _marked("https://a.io/jane.jpg", "Jane Carter CEO"),
            CandidateBlock(text="Lee Park Designer"),
        ])
        drafts = drafts_from_response({"roster": [
            {"firstName": "Jane", "avatarUrl": "https://a.io/made-up.jpg"},
            {"firstName": "Lee", "avatarUrl": "https://a.io/lee-guess.jpg"},
        ]})

        assert assign_avatars(scan, drafts) == ["https://a.io/jane.jpg", None]

    @pytest.mark.unit
    def test_body_fallback_assigns_nothing_even_with_img_tags(self):
        block = _oversized_block_with_imgs()
        scan = ScanResult(blocks=[block], body_fallback=True)
        drafts = drafts_from_response({"roster": [
            {"firstName": "Ana", "avatarUrl": "https://cdn.io/200/p0.jpg"},
            {"firstName": "Ben"},
            {"firstName": "Cy"},
        ]})

        avatars = assign_avatars(scan, drafts)

        assert avatars == [None, None, None]
        members = normalize_roster(drafts, avatars)
        assert all(m.avatar_url is None for m in members)

    @pytest.mark.unit
    def test_body_fallback_with_explicit_strategy(self):
        scan = ScanResult(
            blocks=[CandidateBlock(text="Sam Rivera plays weddings", from_body=True)],
            body_fallback=True,
            page_image_urls=["https://s.io/hero.jpg", "https://s.io/200/sam.jpg"],
        )
        drafts = drafts_from_response({"roster": [{"firstName": "Sam"}]})

        assert assign_avatars(scan, drafts, AvatarFallbackStrategy.SIZE_PATH_200) == ["https://s.io/200/sam.jpg"]
        assert assign_avatars(scan, drafts, AvatarFallbackStrategy.NONE) == [None]


class TestFallbackStrategies:

    URLS = [
        "https://s.io/logo.png",
        "https://s.io/hero.jpg",
        "https://s.io/200/a.jpg",
        "https://s.io/200/b.jpg",
        "https://s.io/200/c.jpg",
    ]

    @pytest.mark.unit
    def test_none_is_always_empty(self):
        assert avatar_pool_for_body_fallback(self.URLS, 3, AvatarFallbackStrategy.NONE) == []

    @pytest.mark.unit
    def test_skip_leading(self):
        pool = avatar_pool_for_body_fallback(self.URLS, 3, AvatarFallbackStrategy.SKIP_LEADING)
        assert pool == ["https://s.io/200/a.jpg", "https://s.io/200/b.jpg", "https://s.io/200/c.jpg"]

    @pytest.mark.unit
    def test_skip_leading_never_skips_needed_images(self):
        pool = avatar_pool_for_body_fallback(self.URLS, 4, AvatarFallbackStrategy.SKIP_LEADING)
        assert pool == self.URLS[1:]

    @pytest.mark.unit
    def test_size_path_needs_one_per_member(self):
        assert avatar_pool_for_body_fallback(self.URLS, 3, AvatarFallbackStrategy.SIZE_PATH_200) == self.URLS[2:]
        assert avatar_pool_for_body_fallback(self.URLS, 4, AvatarFallbackStrategy.SIZE_PATH_200) == []

    @pytest.mark.unit
    def test_strategy_accepts_string_value(self):
        assert avatar_pool_for_body_fallback(self.URLS, 2, "skip_leading") == self.URLS[2:4]


class TestAvatarDebug:

    @pytest.mark.unit
    def test_debug_only_on_body_fallback(self):
        scan = ScanResult(blocks=[_marked("https://a.io/jane.jpg", "Jane Carter CEO")])
        assert build_avatar_debug(scan, []) == {}

    @pytest.mark.unit
    def test_debug_lists_images_and_roster_order(self):
        scan = ScanResult(blocks=[_oversized_block_with_imgs()], body_fallback=True)
        members = normalize_roster(
            drafts_from_response({"roster": [{"firstName": "Ana", "lastName": "Ray"}]}), []
        )

        debug = build_avatar_debug(scan, members)

        assert len(debug["all_img_urls"]) == 4
        assert debug["avatar_pool"] == []
        assert debug["roster_order"] == ["Ana Ray"]
