"""Static metadata describing the quiz portal."""

APP_NAME = "Quiz Portal"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Quiz Portal delivers timed multiple-choice quizzes to invited students. "
    "Open the link from your invitation to start."
)
