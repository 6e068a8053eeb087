"""Display-only progress of a plan through the intake wizard.

Nothing here rejects a write: plan payloads may be filled in any order.
"""

# (stage, plan column), in the order the wizard presents them
STAGES = (
    ("questionnaire", "questionnaire_data"),
    ("lab", "lab_results"),
    ("tcm", "tcm_observations"),
    ("timeline", "timeline_data"),
    ("matrix", "ifm_matrix"),
    ("final", "final_plan"),
)


def is_complete(plan, stage):
    column = dict(STAGES)[stage]
    return bool(getattr(plan, column))


def current_stage(plan):
    """First incomplete stage, or None once every stage has a payload"""
    for stage, _ in STAGES:
        if not is_complete(plan, stage):
            return stage
    return None


def missing_stages(plan, stage):
    """Incomplete stages that come before `stage`"""
    missing = []
    for name, _ in STAGES:
        if name == stage:
            break
        if not is_complete(plan, name):
            missing.append(name)
    return missing


def stage_progress(plan):
    current = current_stage(plan)
    return {
        "current": current,
        "stages": [
            {
                "stage": stage,
                "field": column,
                "complete": is_complete(plan, stage),
                "current": stage == current,
                "missing": missing_stages(plan, stage),
            }
            for stage, column in STAGES
        ],
    }
