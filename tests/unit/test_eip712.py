"""EIP-712 verifier and typed-data layout tests."""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_typed_data

from sre.eip712.common import EIP712_DOMAIN, recover_typed_data_signer, verify_typed_data_signature
from sre.eip712.messages import (
    create_batch_typed_data,
    delete_build_typed_data,
    like_build_typed_data,
    register_typed_data,
    submit_build_typed_data,
    update_batch_typed_data,
    update_build_typed_data,
    update_ens_typed_data,
    update_onchain_data_typed_data,
    update_user_typed_data,
)

BUILD = {
    "name": "Pixel Pals",
    "desc": "On-chain pets",
    "build_type": "dapp",
    "build_category": None,
    "demo_url": "https://pixelpals.xyz",
    "video_url": None,
    "image_url": None,
    "github_url": None,
    "co_builders": [],
}


def _sign(account, typed_data) -> str:
    signed = account.sign_message(encode_typed_data(full_message=typed_data))
    return "0x" + signed.signature.hex().removeprefix("0x")


class TestVerifier:
    def test_valid_signature(self):
        account = Account.create()
        typed_data = register_typed_data()
        assert verify_typed_data_signature(typed_data, account.address, _sign(account, typed_data))

    def test_address_comparison_is_case_insensitive(self):
        account = Account.create()
        typed_data = register_typed_data()
        signature = _sign(account, typed_data)
        assert verify_typed_data_signature(typed_data, account.address.lower(), signature)
        assert recover_typed_data_signer(typed_data, signature) == account.address

    def test_other_signer_rejected(self):
        signer, claimed = Account.create(), Account.create()
        typed_data = register_typed_data()
        assert not verify_typed_data_signature(typed_data, claimed.address, _sign(signer, typed_data))

    def test_flipped_byte_rejected(self):
        account = Account.create()
        typed_data = register_typed_data()
        signature = _sign(account, typed_data)
        # Flip one nibble of r
        flipped = signature[:10] + ("0" if signature[10] != "0" else "1") + signature[11:]
        assert not verify_typed_data_signature(typed_data, account.address, flipped)

    def test_malformed_signature_is_mismatch_not_error(self):
        account = Account.create()
        assert not verify_typed_data_signature(register_typed_data(), account.address, "0xdeadbeef")
        assert not verify_typed_data_signature(register_typed_data(), account.address, "not-hex")

    def test_signature_bound_to_message(self):
        account = Account.create()
        signature = _sign(account, delete_build_typed_data("build-a"))
        assert not verify_typed_data_signature(delete_build_typed_data("build-b"), account.address, signature)

    def test_like_and_unlike_are_distinct(self):
        account = Account.create()
        signature = _sign(account, like_build_typed_data("build-a", "like"))
        assert not verify_typed_data_signature(like_build_typed_data("build-a", "unlike"), account.address, signature)


class TestTypedDataLayout:
    def test_domain_and_primary_type(self):
        typed_data = register_typed_data()
        assert typed_data["domain"] == EIP712_DOMAIN == {"name": "SpeedRunEthereum", "version": "1"}
        assert typed_data["primaryType"] == "Message"

    def test_build_field_order(self):
        fields = [f["name"] for f in submit_build_typed_data(**BUILD)["types"]["Message"]]
        assert fields == [
            "name",
            "desc",
            "buildType",
            "buildCategory",
            "demoUrl",
            "videoUrl",
            "imageUrl",
            "githubUrl",
            "coBuilders",
        ]

    def test_update_build_prepends_build_id(self):
        typed_data = update_build_typed_data("abc", **BUILD)
        assert typed_data["types"]["Message"][0] == {"name": "buildId", "type": "string"}
        assert typed_data["message"]["buildId"] == "abc"

    def test_absent_optionals_signed_as_empty_strings(self):
        message = submit_build_typed_data(**BUILD)["message"]
        assert message["buildCategory"] == ""
        assert message["videoUrl"] == ""
        assert message["coBuilders"] == []

    def test_update_user_message(self):
        message = update_user_typed_data(user_address="0xabc", role="builder", batch_id=None, batch_status=None)[
            "message"
        ]
        assert message == {
            "action": "Update User",
            "role": "builder",
            "batchId": "",
            "batchStatus": "",
            "userAddress": "0xabc",
        }

    def test_update_batch_appends_batch_id(self):
        batch = {
            "name": "Batch 5",
            "start_date": "2026-03-01T00:00:00+00:00",
            "status": "open",
            "contract_address": None,
            "telegram_link": "https://t.me/+batch5",
            "bg_subdomain": "batch5",
            "network": None,
        }
        create = create_batch_typed_data(**batch)
        update = update_batch_typed_data(7, **batch)
        assert update["types"]["Message"] == [*create["types"]["Message"], {"name": "batchId", "type": "string"}]
        assert update["message"]["batchId"] == "7"
        assert update["message"]["action"] == "Update batch"

        account = Account.create()
        signature = _sign(account, update)
        assert not verify_typed_data_signature(update_batch_typed_data(8, **batch), account.address, signature)

    def test_ens_refresh_messages_carry_target(self):
        for builder in (update_ens_typed_data, update_onchain_data_typed_data):
            typed_data = builder("0xabc")
            assert typed_data["types"]["Message"][-1] == {"name": "userAddress", "type": "string"}
            assert typed_data["message"]["userAddress"] == "0xabc"
