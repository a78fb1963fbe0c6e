from PySide6.QtWidgets import QLabel

from core.models import InferenceResult


class PredictionBadge(QLabel):
    """A colored prediction indicator badge."""

    def __init__(self, result: InferenceResult, parent=None):
        super().__init__(parent)
        self.set_result(result)

    def set_result(self, result: InferenceResult):
        if result.is_placeholder:
            color = "#666666"
        elif result.is_fight:
            color = "#c62828"
        else:
            color = "#2e7d32"
        self.setText(f"{result.label} ({result.confidence_percent}%)")
        self.setStyleSheet(f"""
            QLabel {{
                background-color: {color};
                color: white;
                padding: 4px 12px;
                border-radius: 10px;
                font-size: 8pt;
                font-weight: 600;
            }}
        """)
