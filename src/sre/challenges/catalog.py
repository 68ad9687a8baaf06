"""Challenge catalog seed data."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sre.db.models import Challenge

logger = structlog.get_logger()

CHALLENGE_SEED_DATA: list[dict] = [
    {
        "id": "simple-nft-example",
        "challenge_name": "Simple NFT Example",
        "github": "scaffold-eth/se-2-challenges:challenge-0-simple-nft",
        "autograding": True,
        "description": (
            "Create a simple NFT to learn the basics of Scaffold-ETH. Compile and deploy smart contracts, "
            "wire them to a React frontend, then deploy an NFT to a public network."
        ),
        "sort_order": 0,
    },
    {
        "id": "decentralized-staking",
        "challenge_name": "Decentralized Staking App",
        "github": "scaffold-eth/se-2-challenges:challenge-1-decentralized-staking",
        "autograding": True,
        "description": (
            "Build a decentralized application where users coordinate a group funding effort "
            "and only have to trust the code."
        ),
        "sort_order": 1,
    },
    {
        "id": "token-vendor",
        "challenge_name": "Token Vendor",
        "github": "scaffold-eth/se-2-challenges:challenge-2-token-vendor",
        "autograding": True,
        "description": (
            "Create an ERC20 token and an unstoppable vending machine that buys and sells it. "
            'Learn the "approve" pattern and contract to contract interactions.'
        ),
        "sort_order": 2,
    },
    {
        "id": "dice-game",
        "challenge_name": "Dice Game",
        "github": "scaffold-eth/se-2-challenges:challenge-3-dice-game",
        "autograding": True,
        "description": (
            "Randomness is tricky on a public deterministic blockchain. Predict the randomness "
            "of a Dice Game contract to only roll winning dice."
        ),
        "sort_order": 3,
    },
    {
        "id": "minimum-viable-exchange",
        "challenge_name": "Build a DEX",
        "github": "scaffold-eth/se-2-challenges:challenge-4-dex",
        "autograding": True,
        "description": (
            "Build an exchange that swaps ETH to tokens and tokens to ETH, priced by the ratio "
            "of the reserves it holds."
        ),
        "sort_order": 4,
    },
    {
        "id": "state-channels",
        "challenge_name": "A State Channel Application",
        "github": "scaffold-eth/se-2-challenges:challenge-5-state-channels",
        "autograding": True,
        "description": (
            "Let participants transact off-chain while keeping interaction with Ethereum mainnet "
            "at a minimum."
        ),
        "sort_order": 5,
    },
    {
        "id": "multisig",
        "challenge_name": "Multisig Wallet",
        "github": "scaffold-eth/se-2-challenges:challenge-6-multisig",
        "autograding": False,
        "description": (
            "Secure assets with a smart contract wallet that requires multiple owners to confirm "
            "a transaction before it can execute."
        ),
        "sort_order": 6,
    },
    {
        "id": "svg-nft",
        "challenge_name": "SVG NFT",
        "github": "scaffold-eth/se-2-challenges:challenge-7-svg-nft",
        "autograding": False,
        "description": "Create a dynamic SVG NFT whose image and metadata are generated on-chain.",
        "sort_order": 7,
    },
]

# Challenges that must be ACCEPTED before a user can join a batch
JOIN_BATCH_DEPENDENCIES: tuple[str, ...] = ("simple-nft-example",)


async def seed_challenges(db: AsyncSession) -> int:
    """Insert or refresh every catalog challenge. Returns number of challenges seeded."""
    existing = {c.id: c for c in (await db.execute(select(Challenge))).scalars().all()}
    for data in CHALLENGE_SEED_DATA:
        challenge = existing.get(data["id"])
        if challenge is None:
            db.add(Challenge(**data))
            continue
        for field, value in data.items():
            setattr(challenge, field, value)

    await db.commit()
    logger.info("challenges_seeded", count=len(CHALLENGE_SEED_DATA))
    return len(CHALLENGE_SEED_DATA)
