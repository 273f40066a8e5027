"""Engine for exporting quiz results to a spreadsheet."""
from __future__ import annotations

import io
import re
from collections import OrderedDict
from typing import Iterable

import pandas as pd

from examdesk_app.models import Quiz, QuizResult
from examdesk_app.utils.time_utils import isoformat_utc

SHEET_NAME = 'Quiz Results'
COLUMNS = [
    'Roll Number',
    'Name',
    'Department',
    'Section',
    'Batch',
    'Score',
    'Max Score',
    'Violations',
    'Submitted At',
]


class ResultExcelExporter:
    """Stateless engine that renders one row per result."""

    @staticmethod
    def build_frame(quiz: Quiz, results: Iterable[QuizResult]) -> pd.DataFrame:
        max_score = quiz.max_score
        rows = []
        for result in results:
            user = result.user
            rows.append(OrderedDict([
                ('Roll Number', user.roll_number if user else 'N/A'),
                ('Name', user.name if user else 'Unknown'),
                ('Department', (user.department if user else None) or 'N/A'),
                ('Section', (user.section if user else None) or 'N/A'),
                ('Batch', (user.batch if user else None) or 'N/A'),
                ('Score', result.score),
                ('Max Score', max_score),
                ('Violations', result.violations),
                ('Submitted At', isoformat_utc(result.submitted_at)),
            ]))
        return pd.DataFrame(rows, columns=COLUMNS)

    @staticmethod
    def filename_for(quiz: Quiz) -> str:
        safe_title = re.sub(r'\s+', '_', quiz.title.strip())
        return f"quiz_results_{safe_title}.xlsx"

    @classmethod
    def export_quiz_results(cls, quiz: Quiz, results: Iterable[QuizResult]) -> tuple[io.BytesIO, str]:
        """
        Generates the results workbook for a quiz.
        Returns: (BytesIO_buffer, suggested_filename)
        """
        df = cls.build_frame(quiz, results)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        output.seek(0)

        return output, cls.filename_for(quiz)
