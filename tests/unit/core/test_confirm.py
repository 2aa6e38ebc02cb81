import io

import pytest

from prlander.core.confirm import (
    BANNER,
    AutoApprove,
    Confirm,
    InteractivePrompt,
    require,
)
from prlander.core.errors import OperationAborted


def prompt(answer):
    out = io.StringIO()
    return InteractivePrompt(stdin=io.StringIO(answer), stdout=out), out


@pytest.mark.parametrize("answer,expected", [
    ("y\n", True),
    ("Yes\n", True),
    ("n\n", False),
    ("\n", False),
    ("", False),
])
def test_interactive_prompt_answers(answer, expected):
    confirm, _ = prompt(answer)
    assert confirm("Push branch feature") is expected


def test_interactive_prompt_shows_action_and_command():
    confirm, out = prompt("y\n")

    confirm("Merge pull request #42", "curl -X PUT https://api.github.com/x")

    text = out.getvalue()
    assert BANNER in text
    assert "ACTION: Merge pull request #42" in text
    assert "REPRODUCIBLE COMMAND/API CALL:\ncurl -X PUT" in text
    assert text.endswith("Do you want to continue? (y/n): ")


def test_interactive_prompt_without_command():
    confirm, out = prompt("y\n")
    confirm("Install dependencies")
    assert "REPRODUCIBLE" not in out.getvalue()


def test_auto_approve_records_descriptions():
    confirm = AutoApprove()

    assert confirm("Push tag v1.0.1", "git push origin v1.0.1")
    assert confirm("Merge pull request #42")
    assert confirm.approved == ["Push tag v1.0.1", "Merge pull request #42"]


def test_policies_satisfy_protocol():
    assert isinstance(AutoApprove(), Confirm)
    assert isinstance(prompt("")[0], Confirm)


def test_require_raises_on_decline():
    confirm, _ = prompt("n\n")

    with pytest.raises(OperationAborted) as exc:
        require(confirm, "Push branch feature", "git push origin feature")

    assert exc.value.description == "Push branch feature"
    assert exc.value.next_step == "git push origin feature"


def test_require_passes_on_accept():
    require(AutoApprove(), "Push branch feature")
