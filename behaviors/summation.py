from behaviors.arithmetic import ArithmeticBehavior


class SummationBehavior(ArithmeticBehavior):
    """Constrains the sum of the top nets to equal the sum of the bottom nets."""
    type_name = "plus"

    def contribute_equations(self, node, data, add_equation) -> None:
        top = self.top_nets(node, data)
        bottom = self.bottom_nets(node, data)
        if not top and not bottom:
            return

        def balance(x, row):
            residual = 0.0
            for net in top:
                row[net.id] += 1.0
                residual += x[net.id]
            for net in bottom:
                row[net.id] -= 1.0
                residual -= x[net.id]
            return residual

        add_equation(balance)
