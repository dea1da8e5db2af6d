from dataclasses import replace

from guard_core.config import ALTERNATE_CONFIG, CodePolicy, PRIMARY_CONFIG
from guard_core.feedback import decide_feedback


def _all(score):
    return {label: score for label in PRIMARY_CONFIG.labels}


def test_first_match_sets_code_and_all_lines_are_appended():
    prediction = _all(0.9)
    prediction.update(leftElbow=0.2, rightElbow=0.3)
    fb = decide_feedback(prediction, PRIMARY_CONFIG)
    assert fb.lines == (
        PRIMARY_CONFIG.warnings["leftElbow"],
        PRIMARY_CONFIG.warnings["rightElbow"],
    )
    assert fb.code == 1
    assert not fb.all_clear


def test_code_follows_priority_not_lowest_score():
    prediction = _all(0.9)
    prediction.update(rightWrist=0.4, head=0.01)
    fb = decide_feedback(prediction, PRIMARY_CONFIG)
    assert fb.code == 4
    assert fb.message == "\n".join([PRIMARY_CONFIG.warnings["rightWrist"], PRIMARY_CONFIG.warnings["head"]])


def test_all_clear():
    fb = decide_feedback(_all(0.5), PRIMARY_CONFIG)
    assert fb.message == PRIMARY_CONFIG.all_clear
    assert fb.code is None
    assert fb.all_clear


def test_missing_label_counts_as_below_threshold():
    prediction = _all(0.9)
    del prediction["head"]
    fb = decide_feedback(prediction, PRIMARY_CONFIG)
    assert fb.lines == (PRIMARY_CONFIG.warnings["head"],)
    assert fb.code == 7


def test_no_code_policy_keeps_text():
    config = replace(PRIMARY_CONFIG, code_policy=CodePolicy.NONE)
    fb = decide_feedback(_all(0.1), config)
    assert len(fb.lines) == len(config.labels)
    assert fb.code is None


def test_alternate_variant_messages():
    prediction = {"leftElbow": 0.9, "rightElbow": 0.9, "leftWrist": 0.2, "rightWrist": 0.7}
    fb = decide_feedback(prediction, ALTERNATE_CONFIG)
    assert fb.message == "Left wrist in incorrect position!"
    assert fb.code == 3
    ok = decide_feedback({k: 0.8 for k in ALTERNATE_CONFIG.labels}, ALTERNATE_CONFIG)
    assert ok.message == "Punch form is correct!"
