"""
Layers built from other layers.

Both variants own one activation arena, one blame arena and one weight
arena, and re-wrap their units over slices of them, so writing a unit's
output is writing the parent's output.
"""
import numpy as np

from ..base import require
from .layers import Layer, LayerKind


class _UnitLayer(Layer):
    """Shared bookkeeping for layers whose weight is the concatenation of their units'."""

    def _weight_slices(self, units):
        start = 0
        for unit in units:
            end = start + unit.weight.size
            yield unit, self.weight[start:end]
            start = end

    def _bind_units(self, units, weight):
        if weight is None and self.weight.size:
            self.weight[:] = np.concatenate([u.weight for u in units])

    def init_weight(self, rng):
        for unit in self.units:
            unit.init_weight(rng)

    def wrap(self, activation, blame, weight=None):
        clone = type(self)(self.units, activation, blame, weight)
        if weight is None:
            clone.weight.fill(0.0)
        return clone


class CompositeLayer(_UnitLayer):
    """
    Units side by side.

    The input is split into consecutive slices, one per unit, and the
    outputs are laid out consecutively in ``activation``. The units are
    wrapped, not copied; the layers passed in keep their own buffers.

    Args:
        units (list of Layer): Components, at least one.
    """

    kind = LayerKind.COMPOSITE

    def __init__(self, units, activation=None, blame=None, weight=None):
        units = list(units)
        require(len(units) > 0, "CompositeLayer: expected at least one unit",
                error=ValueError)
        self._in_size = sum(u.in_size for u in units)
        self._bind(activation, blame, weight,
                   sum(u.out_size for u in units),
                   sum(u.weight.size for u in units))
        self._bind_units(units, weight)

        self.units = []
        start = 0
        for unit, w in self._weight_slices(units):
            end = start + unit.out_size
            self.units.append(unit.wrap(self.activation[start:end],
                                        self.blame[start:end], w))
            start = end

    @property
    def name(self):
        return "Layer Composite"

    def _input_slices(self, x):
        start = 0
        for unit in self.units:
            end = start + unit.in_size
            yield unit, x[start:end]
            start = end

    def activate(self, x):
        self._check_input(x)
        x = np.asarray(x, dtype=float)
        for unit, part in self._input_slices(x):
            unit.activate(part)
        return self.activation

    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        for unit, part in self._input_slices(prev_blame):
            unit.backprop(part)
        return prev_blame

    def update_gradient(self, x, gradient):
        self._check_input(x)
        self._check_gradient(gradient)
        x = np.asarray(x, dtype=float)
        start = 0
        for unit, part in self._input_slices(x):
            end = start + unit.weight.size
            unit.update_gradient(part, gradient[start:end])
            start = end
        return gradient

    def __repr__(self):
        return f"CompositeLayer({self.units!r})"


class StackLayer(_UnitLayer):
    """
    Units in series acting as one layer.

    Unit ``i`` consumes the output of unit ``i - 1``. The last unit writes
    straight into the stack's ``activation`` and reads the stack's
    ``blame``; inner units keep private buffers. Stacking elementwise
    activations multiplies their derivatives on the way back.

    Args:
        units (list of Layer): Components, at least one, each accepting the
            previous unit's output.
    """

    kind = LayerKind.STACK

    def __init__(self, units, activation=None, blame=None, weight=None):
        units = list(units)
        require(len(units) > 0, "StackLayer: expected at least one unit",
                error=ValueError)
        for prev, unit in zip(units, units[1:]):
            require(unit.in_size == prev.out_size,
                    f"StackLayer: {unit.name} expects {unit.in_size} inputs, "
                    f"but {prev.name} produces {prev.out_size}")
        self._in_size = units[0].in_size
        self._bind(activation, blame, weight, units[-1].out_size,
                   sum(u.weight.size for u in units))
        self._bind_units(units, weight)

        self.units = []
        last = len(units) - 1
        for i, (unit, w) in enumerate(self._weight_slices(units)):
            if i == last:
                self.units.append(unit.wrap(self.activation, self.blame, w))
            else:
                self.units.append(unit.wrap(np.zeros(unit.out_size),
                                            np.zeros(unit.out_size), w))

    @property
    def name(self):
        return "Layer Stack"

    @property
    def out_dims(self):
        return self.units[-1].out_dims

    def activate(self, x):
        self._check_input(x)
        h = np.asarray(x, dtype=float)
        for unit in self.units:
            h = unit.activate(h)
        return self.activation

    def _propagate_inner(self):
        """Carry the stack's blame back to the first unit's ``blame``."""
        for i in range(len(self.units) - 1, 0, -1):
            self.units[i].backprop(self.units[i - 1].blame)

    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        self._propagate_inner()
        self.units[0].backprop(prev_blame)
        return prev_blame

    def update_gradient(self, x, gradient):
        # a stack in first position never has backprop called on it
        self._check_input(x)
        self._check_gradient(gradient)
        self._propagate_inner()
        h = np.asarray(x, dtype=float)
        start = 0
        for unit in self.units:
            end = start + unit.weight.size
            unit.update_gradient(h, gradient[start:end])
            h = unit.activation
            start = end
        return gradient

    def __repr__(self):
        return f"StackLayer({self.units!r})"
