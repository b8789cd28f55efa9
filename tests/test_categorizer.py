"""Tests for payout category mapping."""

import pytest

from agency_console.models.payout import PayoutCategory
from agency_console.services.payouts.categorizer import get_payout_category


class TestRoleTable:
    @pytest.mark.parametrize("role, department, expected", [
        ("chatter", "chatting", PayoutCategory.CHATTER),
        ("va", "", PayoutCategory.VA),
        ("model", "models", PayoutCategory.MODEL),
        ("affiliator", "", PayoutCategory.AFFILIATE),
        ("chatting_manager", "chatting", PayoutCategory.MANAGER),
        ("editor", "marketing", PayoutCategory.MANAGER),
    ])
    def test_known_roles(self, role, department, expected) -> None:
        assert get_payout_category(role, department) == expected

    def test_case_and_whitespace_ignored(self) -> None:
        assert get_payout_category("  Chatter ", "Chatting") == PayoutCategory.CHATTER


class TestFallbacks:
    def test_manager_in_role_text(self) -> None:
        assert get_payout_category("Head Social Media Manager", "marketing") == PayoutCategory.MANAGER

    def test_affiliate_department_beats_role_text(self) -> None:
        assert get_payout_category("partner_manager", "affiliate") == PayoutCategory.AFFILIATE
        assert get_payout_category("chatter", "affiliate") == PayoutCategory.AFFILIATE

    def test_department_table(self) -> None:
        assert get_payout_category("camera", "production") == PayoutCategory.MANAGER

    def test_unknown_defaults_to_va(self) -> None:
        assert get_payout_category("intern", "ops") == PayoutCategory.VA
        assert get_payout_category("", "") == PayoutCategory.VA
        assert get_payout_category(None, None) == PayoutCategory.VA
