"""
Traversal order for visiting the pages of a collection.

Pages nearest the reader are visited first so partial results become useful
as early as possible.
"""


def build_traversal_order(current: int, total: int) -> list[int]:
    """Build the order in which pages are visited.

    Starts at ``current`` and then alternates ``current - offset`` and
    ``current + offset`` for growing offsets, skipping pages outside
    ``[1, total]``.

    Args:
        current: Page the reader occupies (1-indexed, clamped into range)
        total: Number of pages in the collection

    Returns:
        A permutation of ``1..total`` beginning with ``current``

    Raises:
        ValueError: If ``total`` is less than 1

    Example:
        >>> build_traversal_order(4, 7)
        [4, 3, 5, 2, 6, 1, 7]
    """
    if total < 1:
        raise ValueError(f"total must be at least 1, got {total}")

    current = min(max(current, 1), total)
    order: list[int] = []
    visited: set[int] = set()

    def push(page: int) -> None:
        if 1 <= page <= total and page not in visited:
            visited.add(page)
            order.append(page)

    push(current)
    offset = 1
    while len(order) < total and offset <= total:
        push(current - offset)
        push(current + offset)
        offset += 1

    # Fallback: anything the alternating walk did not reach, ascending
    for page in range(1, total + 1):
        push(page)

    return order
