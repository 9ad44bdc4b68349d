class RepoError(Exception):
    """Base class for repository-level errors."""

    pass


# ------------------------- COMBO RULES -------------------------


class ComboRuleRepoError(RepoError):
    """Generic combo rule repository error."""

    pass


# ------------------------- MOTIONS -------------------------


class MotionRepoError(RepoError):
    """Generic motion repository error"""

    pass


# ------------------------- MODIFIERS -------------------------


class ModifierRepoError(RepoError):
    """Generic modifier table repository error"""

    pass
