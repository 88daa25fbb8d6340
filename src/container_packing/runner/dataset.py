"""Random item generation and item orderings for packing experiments."""

import random
from typing import Callable, List, Optional

from container_packing.core.models import Item


def generate_items(
    count: int = 10,
    seed: Optional[int] = None,
    min_dim: int = 1,
    max_dim: int = 10,
    max_quantity: int = 3,
) -> List[Item]:
    """
    Generate random item types with integer dimensions.

    Args:
        count:        Number of item types.
        seed:         Random seed for reproducibility (default: None).
        min_dim:      Smallest dimension (inclusive).
        max_dim:      Largest dimension (inclusive).
        max_quantity: Largest quantity per item type (inclusive, minimum 1).

    Returns:
        List of Items with ids 1..count.
    """
    rng = random.Random(seed)

    items = []
    for i in range(count):
        length = rng.randint(min_dim, max_dim)
        width = rng.randint(min_dim, max_dim)
        height = rng.randint(min_dim, max_dim)
        quantity = rng.randint(1, max(max_quantity, 1))
        items.append(Item(id=i + 1, length=length, width=width, height=height, quantity=quantity))

    return items


def as_given(items: List[Item], seed: Optional[int] = None) -> List[Item]:
    """Return a copy of *items* in their original order."""
    return list(items)


def volume_desc(items: List[Item], seed: Optional[int] = None) -> List[Item]:
    """Sort item types by unit volume, largest first (stable)."""
    return sorted(items, key=lambda i: i.volume, reverse=True)


def random_order(items: List[Item], seed: Optional[int] = None) -> List[Item]:
    """Shuffled copy of *items*."""
    shuffled = list(items)
    random.Random(seed).shuffle(shuffled)
    return shuffled


# Map of ordering strategy names to functions
ORDERING_STRATEGIES: dict[str, Callable[..., List[Item]]] = {
    "as_given": as_given,
    "volume_desc": volume_desc,
    "random": random_order,
}


def get_ordering_strategy(name: str) -> Callable[..., List[Item]]:
    """
    Get an ordering strategy function by name.

    Raises:
        ValueError: If strategy name is not recognized
    """
    if name not in ORDERING_STRATEGIES:
        raise ValueError(
            f"Unknown ordering strategy: {name}. "
            f"Available: {list(ORDERING_STRATEGIES.keys())}"
        )
    return ORDERING_STRATEGIES[name]
