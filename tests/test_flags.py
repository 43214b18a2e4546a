"""Tests for modifier flags and modifier cleaning."""

from retypecheck.flags import NO_FLAGS, ROUND_TRIP_FLAGS, Flag, Modifiers, clean_modifiers
from retypecheck.names import TypeName
from retypecheck.trees import Apply, Ident, New


class TestModifiers:
    """Tests for flag queries on modifier sets."""

    def test_has_flag_any_bit(self) -> None:
        """has_flag is true if any of the given bits is set."""
        mods = Modifiers(Flag.SYNTHETIC)
        assert mods.has_flag(Flag.SYNTHETIC | Flag.DEFAULTPARAM)
        assert not mods.has_flag(Flag.LAZY)

    def test_defaults(self) -> None:
        """Empty modifiers carry nothing."""
        mods = Modifiers()
        assert mods.flags == NO_FLAGS
        assert mods.private_within == TypeName("")
        assert mods.annotations == ()


class TestCleanModifiers:
    """Tests for projecting modifiers onto the round-trippable flags."""

    def test_drops_checker_only_flags(self) -> None:
        """Flags the checker sets internally are removed."""
        mods = Modifiers(Flag.MUTABLE | Flag.GETTER | Flag.STABLE | Flag.METHOD)
        assert clean_modifiers(mods).flags == Flag.MUTABLE

    def test_keeps_round_trip_flags(self) -> None:
        """Round-trippable flags are kept as they are."""
        mods = Modifiers(ROUND_TRIP_FLAGS)
        assert clean_modifiers(mods).flags == ROUND_TRIP_FLAGS

    def test_keeps_qualifier_and_annotations(self) -> None:
        """Only the flags are cleaned."""
        annotation = Apply(New(Ident(TypeName("deprecated"))))
        mods = Modifiers(Flag.PRIVATE | Flag.ACCESSOR, TypeName("pkg"), (annotation,))
        cleaned = clean_modifiers(mods)
        assert cleaned == Modifiers(Flag.PRIVATE, TypeName("pkg"), (annotation,))

    def test_custom_whitelist(self) -> None:
        """A checker with other conventions supplies its own whitelist."""
        mods = Modifiers(Flag.LAZY | Flag.FINAL)
        assert clean_modifiers(mods, Flag.FINAL).flags == Flag.FINAL

    def test_checker_only_flags_are_not_round_trip(self) -> None:
        """No checker-internal flag is in the default whitelist."""
        for flag in (Flag.STABLE, Flag.ACCESSOR, Flag.GETTER, Flag.SETTER, Flag.EXPANDEDNAME):
            assert not flag & ROUND_TRIP_FLAGS
