"""Core business logic.

Modules:
- auth: Accounts, passwords and bearer sessions
- navigation: Role menus
- document_extractor / question_parser / question_extractor: Question import
- question_saver / question_bank: Bank persistence and bulk actions
- learning_path_generator: AI learning paths
- study_area / practice / my_tests / dashboards / chat: Student portal
"""

__all__ = [
    "auth",
    "navigation",
    "document_extractor",
    "question_parser",
    "question_extractor",
    "question_saver",
    "question_bank",
    "learning_path_generator",
    "study_area",
    "practice",
    "my_tests",
    "dashboards",
    "chat",
]
