"""
Streamlit runtime detection.

The core runs inside Streamlit script threads, inside Firestore watch
threads and under plain pytest. Only the first may touch st.session_state
or emit widgets.
"""

from streamlit.runtime.scriptrunner import get_script_run_ctx


def has_script_context() -> bool:
    """True when called from a thread attached to a running Streamlit script."""
    return get_script_run_ctx(suppress_warning=True) is not None
