"""Tests for nuroo/progress/

Progress is a 0-100 score per development area:
- Values are clamped on every write
- Difficulty tiers partition the range at 30 and 70
- Area labels from onboarding map onto the six stored fields
"""

import pytest

from nuroo.errors import ValidationError
from nuroo.progress.areas import DevelopmentArea, Difficulty, calculate_difficulty, resolve_area
from nuroo.progress.models import DEFAULT_PROGRESS_VALUE, UserProgress, clamp


# ─────────────────────────────────────────────────────────────────────────────
# Pure Function Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestClamp:
    @pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (42.5, 42.5), (100, 100), (140, 100)])
    def test_clamps(self, value, expected):
        assert clamp(value) == expected


class TestCalculateDifficulty:
    """Tiers: [0,30) beginner, [30,70) intermediate, [70,100] advanced."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, Difficulty.BEGINNER),
            (29.9, Difficulty.BEGINNER),
            (30, Difficulty.INTERMEDIATE),
            (69.9, Difficulty.INTERMEDIATE),
            (70, Difficulty.ADVANCED),
            (100, Difficulty.ADVANCED),
        ],
    )
    def test_boundaries(self, value, expected):
        assert calculate_difficulty(value) == expected


class TestResolveArea:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("speech", DevelopmentArea.COMMUNICATION),
            ("Language", DevelopmentArea.COMMUNICATION),
            ("communication", DevelopmentArea.COMMUNICATION),
            ("motor", DevelopmentArea.MOTOR_SKILLS),
            ("motor_skills", DevelopmentArea.MOTOR_SKILLS),
            ("social", DevelopmentArea.SOCIAL),
            ("cognitive", DevelopmentArea.COGNITIVE),
            ("sensory", DevelopmentArea.SENSORY),
            ("behavior", DevelopmentArea.BEHAVIOR),
        ],
    )
    def test_known_labels(self, label, expected):
        assert resolve_area(label) == expected

    def test_enum_passes_through(self):
        assert resolve_area(DevelopmentArea.SOCIAL) == DevelopmentArea.SOCIAL

    def test_unknown_label_raises(self):
        with pytest.raises(ValidationError):
            resolve_area("astrology")


class TestUserProgress:
    def test_defaults(self):
        progress = UserProgress()
        assert all(v == DEFAULT_PROGRESS_VALUE for v in progress.to_dict().values())
        assert len(progress.to_dict()) == 6

    def test_clamps_on_construction(self):
        progress = UserProgress(social=150, sensory=-3)
        assert progress.social == 100
        assert progress.sensory == 0

    def test_from_dict_fills_gaps(self):
        progress = UserProgress.from_dict({"social": "40", "cognitive": "oops"})
        assert progress.social == 40
        assert progress.cognitive == DEFAULT_PROGRESS_VALUE
        assert progress.behavior == DEFAULT_PROGRESS_VALUE


# ─────────────────────────────────────────────────────────────────────────────
# ProgressStore Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestProgressStore:
    """Tests for persisted progress."""

    @pytest.mark.asyncio
    async def test_none_before_initialisation(self, progress_store, mock_user_id):
        assert await progress_store.get_progress(mock_user_id) is None

    @pytest.mark.asyncio
    async def test_initialise_writes_defaults_and_date(self, progress_store, doc_store, mock_user_id):
        progress = await progress_store.get_or_initialize(mock_user_id)

        profile = await doc_store.get_profile(mock_user_id)
        assert progress == UserProgress()
        assert profile["progress"]["social"] == DEFAULT_PROGRESS_VALUE
        assert profile["last_task_date"] == "2026-10-19"

    @pytest.mark.asyncio
    async def test_initialise_keeps_other_profile_fields(self, progress_store, doc_store, mock_user_id):
        await doc_store.merge_profile(mock_user_id, {"name": "Alice"})

        await progress_store.get_or_initialize(mock_user_id)

        assert (await doc_store.get_profile(mock_user_id))["name"] == "Alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value,stored", [(-10, 0), (55.5, 55.5), (250, 100)])
    async def test_update_stores_clamped_value(self, progress_store, mock_user_id, value, stored):
        await progress_store.get_or_initialize(mock_user_id)

        result = await progress_store.update_progress(mock_user_id, "social", value)

        assert result == stored
        assert (await progress_store.get_progress(mock_user_id)).social == stored

    @pytest.mark.asyncio
    async def test_update_touches_only_that_area(self, progress_store, mock_user_id):
        await progress_store.get_or_initialize(mock_user_id)

        await progress_store.update_progress(mock_user_id, "speech", 60)

        progress = await progress_store.get_progress(mock_user_id)
        assert progress.communication == 60
        assert progress.social == DEFAULT_PROGRESS_VALUE

    @pytest.mark.asyncio
    async def test_update_unknown_area_raises(self, progress_store, mock_user_id):
        with pytest.raises(ValidationError):
            await progress_store.update_progress(mock_user_id, "astrology", 10)

    @pytest.mark.asyncio
    async def test_award_moves_difficulty_tier(self, progress_store, mock_user_id):
        """20 + 25 = 45 moves social from beginner to intermediate."""
        await progress_store.get_or_initialize(mock_user_id)
        await progress_store.update_progress(mock_user_id, "social", 20)
        assert await progress_store.get_difficulty(mock_user_id, "social") == Difficulty.BEGINNER

        assert await progress_store.award(mock_user_id, "social", 25) == 45
        assert await progress_store.get_difficulty(mock_user_id, "social") == Difficulty.INTERMEDIATE

    @pytest.mark.asyncio
    async def test_award_caps_at_100(self, progress_store, mock_user_id):
        await progress_store.get_or_initialize(mock_user_id)
        await progress_store.update_progress(mock_user_id, "sensory", 98)

        assert await progress_store.award(mock_user_id, "sensory", 5) == 100

    @pytest.mark.asyncio
    async def test_personalized_difficulties_cover_all_areas(self, progress_store, mock_user_id):
        difficulties = await progress_store.get_personalized_difficulties(mock_user_id)

        assert set(difficulties) == set(DevelopmentArea)
        assert all(d == Difficulty.BEGINNER for d in difficulties.values())

    @pytest.mark.asyncio
    async def test_reset(self, progress_store, mock_user_id):
        await progress_store.update_progress(mock_user_id, "social", 90)

        await progress_store.reset_progress(mock_user_id)

        assert (await progress_store.get_progress(mock_user_id)).social == DEFAULT_PROGRESS_VALUE
