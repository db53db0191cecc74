import numpy as np

from behaviors.arithmetic import ArithmeticBehavior


def _partials(values: np.ndarray) -> np.ndarray:
    """
    d(prod(values))/d(values[i]) for every i, computed as the product of the
    other factors so that a zero factor never causes a division by zero.
    """
    n = len(values)
    left = np.ones(n)
    right = np.ones(n)
    if n > 1:
        left[1:] = np.cumprod(values[:-1])
        right[:-1] = np.cumprod(values[::-1][:-1])[::-1]
    return left * right


class ProductBehavior(ArithmeticBehavior):
    """
    Constrains the product of the top nets to equal the product of the bottom nets.
    Only contributes when at least one top and one bottom port are connected.
    """
    type_name = "mul"

    def contribute_equations(self, node, data, add_equation) -> None:
        top = self.top_nets(node, data)
        bottom = self.bottom_nets(node, data)
        if not top or not bottom:
            return
        top_ids = np.array([net.id for net in top], dtype=int)
        bottom_ids = np.array([net.id for net in bottom], dtype=int)

        def balance(x, row):
            top_values = x[top_ids]
            bottom_values = x[bottom_ids]
            # unbuffered add: a net may sit on several ports
            np.add.at(row, top_ids, _partials(top_values))
            np.subtract.at(row, bottom_ids, _partials(bottom_values))
            return float(np.prod(top_values) - np.prod(bottom_values))

        add_equation(balance)
