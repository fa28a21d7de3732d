"""
SConboard — Form State Layer
=============================

What:  The form as an explicit, immutable state value plus pure reducers.
How:   state = reduce(state, event). No I/O happens here; FormSession performs
       the side effects and dispatches their results as events.
"""

from sconboard.state.form_state import FlowStatus, FormState
from sconboard.state.reducer import reduce
from sconboard.state.validation import validate_record

__all__ = ["FlowStatus", "FormState", "reduce", "validate_record"]
