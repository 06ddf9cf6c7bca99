#!/usr/bin/env python3
"""
Example usage of the cellauto package.
"""

from cellauto import AdditiveRule, CellGroup, CellularAutomaton, ElementaryRule


def main():
    """Demonstrate programmatic usage of the cellauto package."""
    # Rule 30 from a single live cell in the middle of the row
    width = 41
    initial = CellGroup([width])
    initial.set_value(1, width // 2)
    ca = CellularAutomaton(initial, ElementaryRule(30))

    print("Rule 30:")
    for group in ca.iterations(20):
        print(group)
    print()

    # Additive rule wrapping values into [0, 9]
    ca = CellularAutomaton(CellGroup([8], [1, 2, 3, 0, 0, 5, 0, 9]), AdditiveRule(0, 9))
    print("Additive rule, 0..9 with wrapping:")
    for i in range(8):
        print(f"  {i}: {ca.get_iteration(i).to_list()}")

    print(f"Cached iterations: {ca.cached_iterations.start} to {ca.cached_iterations.stop - 1}")


if __name__ == "__main__":
    main()
