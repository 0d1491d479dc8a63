"""Tests for the partner overlay."""

import asyncio

import pytest

from feeshare.api import PartnerConfig
from feeshare.errors import PartnerOverlayError
from feeshare.split.builder import build_fee_split_plan, build_operation_sequence
from feeshare.split.partner import (
    PartnerDirectory,
    attach_partner_overlay,
    ensure_partner_config,
    overlay_amounts,
)
from feeshare.types import PartnerOverlay, ResolvedRecipient


def _plan(wallets, bps_list=(7000, 3000)):
    addresses = wallets(len(bps_list))
    return build_fee_split_plan(
        "Mint111", [ResolvedRecipient(a, bps) for a, bps in zip(addresses, bps_list)]
    )


class TestAttachPartnerOverlay:
    def test_recipients_unchanged(self, wallets):
        plan = _plan(wallets)
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg")
        with_overlay = attach_partner_overlay(plan, overlay)

        assert with_overlay.recipients == plan.recipients
        assert sum(r.bps for r in with_overlay.recipients) == 10000
        assert with_overlay.partner_overlay == overlay
        assert plan.partner_overlay is None

    def test_default_bps(self):
        assert PartnerOverlay(partner="P", partner_config="C").bps == 2500

    def test_already_registered_asset_rejected(self, wallets):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg")
        with pytest.raises(PartnerOverlayError, match="already registered"):
            attach_partner_overlay(_plan(wallets), overlay, {"meteoraConfigKey": "Cfg"})

    def test_registered_with_same_partner_accepted(self, wallets):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg")
        existing = {"meteoraConfigKey": "Cfg", "partner": "Partner", "partnerConfig": "PartnerCfg"}
        plan = attach_partner_overlay(_plan(wallets), overlay, existing)
        assert plan.partner_overlay == overlay

    def test_registered_with_other_partner_rejected(self, wallets):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg")
        existing = {"meteoraConfigKey": "Cfg", "partner": "Other", "partnerConfig": "OtherCfg"}
        with pytest.raises(PartnerOverlayError, match="registered with partner OtherCfg"):
            attach_partner_overlay(_plan(wallets), overlay, existing)

    def test_second_overlay_rejected(self, wallets):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg")
        plan = attach_partner_overlay(_plan(wallets), overlay)
        with pytest.raises(PartnerOverlayError, match="already has"):
            attach_partner_overlay(plan, overlay)

    @pytest.mark.parametrize("bps", [0, -1, 10001, 25.5])
    def test_invalid_bps_rejected(self, wallets, bps):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg", bps=bps)
        with pytest.raises(PartnerOverlayError):
            attach_partner_overlay(_plan(wallets), overlay)

    def test_full_skim_allowed(self, wallets):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg", bps=10000)
        attach_partner_overlay(_plan(wallets), overlay)

    def test_register_operation_carries_overlay(self, wallets):
        overlay = PartnerOverlay(partner="Partner", partner_config="PartnerCfg")
        plan = attach_partner_overlay(_plan(wallets), overlay)
        (register,) = build_operation_sequence(plan).operations
        assert register.params["partner"] == overlay


class TestOverlayAmounts:
    def test_creator_only_with_partner(self):
        creator = ResolvedRecipient("Creator", 10000)
        overlay = PartnerOverlay(partner="P", partner_config="C", bps=2500)
        partner_amount, splits = overlay_amounts(1000, [creator], overlay)
        assert partner_amount == 250
        assert splits == [("Creator", 750)]

    def test_recipients_share_remainder(self):
        recipients = [ResolvedRecipient("A", 6000), ResolvedRecipient("B", 4000)]
        overlay = PartnerOverlay(partner="P", partner_config="C", bps=2500)
        partner_amount, splits = overlay_amounts(10_000, recipients, overlay)
        assert partner_amount == 2500
        assert splits == [("A", 4500), ("B", 3000)]

    def test_without_overlay(self):
        partner_amount, splits = overlay_amounts(99, [ResolvedRecipient("A", 10000)])
        assert partner_amount == 0
        assert splits == [("A", 99)]


class TestPartnerDirectory:
    def test_load_existing(self, api):
        api.partners["Partner"] = PartnerConfig(partner="Partner", partner_config="PartnerCfg", bps=2500)
        overlay = asyncio.run(PartnerDirectory(api).load("Partner", 1000))
        assert overlay.partner_config == "PartnerCfg"
        assert overlay.bps == 1000

    def test_load_missing(self, api):
        with pytest.raises(PartnerOverlayError, match="No partner config"):
            asyncio.run(PartnerDirectory(api).load("Nobody"))


class TestEnsurePartnerConfig:
    def test_creates_when_missing(self, api, context, ledger):
        key = asyncio.run(ensure_partner_config(api, context))
        assert key == api.partners[context.signer.address].partner_config
        assert len(ledger.sent) == 1

    def test_reuses_existing(self, api, context, ledger):
        first = asyncio.run(ensure_partner_config(api, context))
        second = asyncio.run(ensure_partner_config(api, context))
        assert first == second
        assert len(ledger.sent) == 1
