from lanlearner.domain.models import SubjectProgress
from lanlearner.domain.taxonomy import CategoryTree


def subject_progress(tree: CategoryTree, subject_id: str | None) -> SubjectProgress:
    """
    Learned counts for the first two levels beneath a subject.

    Level 1 is the subject's direct children, level 2 their children.
    An unknown or missing subject yields all-zero progress.
    """
    if subject_id is None or subject_id not in tree:
        return SubjectProgress()
    level1 = tree.children_of(subject_id)
    level2 = [child for c in level1 for child in tree.children_of(c.id)]
    return SubjectProgress(
        level1_total=len(level1),
        level1_learned=sum(1 for c in level1 if c.is_learned),
        level2_total=len(level2),
        level2_learned=sum(1 for c in level2 if c.is_learned),
    )
