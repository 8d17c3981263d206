from pathlib import Path

import openpyxl
import pandas as pd
import structlog
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

logger = structlog.get_logger()

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1F3864", end_color="1F3864", fill_type="solid")

COLUMN_FORMATS = {
    "SN": {"alignment": Alignment(horizontal="center")},
    "CUN": {"alignment": Alignment(horizontal="center")},
    "Fecha Radicado": {"alignment": Alignment(horizontal="center")},
    "Fecha Cierre": {"alignment": Alignment(horizontal="center")},
    "Fecha Vencimiento": {"alignment": Alignment(horizontal="center")},
    "Dia": {"number_format": "0", "alignment": Alignment(horizontal="right")},
    "Estado_Gestion": {"alignment": Alignment(horizontal="center")},
    "Prioridad": {"alignment": Alignment(horizontal="center")},
    "Analisis de la IA": {"alignment": Alignment(horizontal="left", wrap_text=True)},
    "obs": {"alignment": Alignment(horizontal="left", wrap_text=True)},
}

_MAX_COLUMN_WIDTH = 60


class OpenpyxlExcelHandler:
    def write(self, df: pd.DataFrame, file_path: Path, sheet_name: str = "Casos") -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_excel(file_path, sheet_name=sheet_name, index=False, engine="openpyxl")

        wb = openpyxl.load_workbook(file_path)
        try:
            ws = wb[sheet_name]
            column_names = list(df.columns)

            for col_idx, col_name in enumerate(column_names, start=1):
                header = ws.cell(row=1, column=col_idx)
                header.font = HEADER_FONT
                header.fill = HEADER_FILL
                header.alignment = Alignment(horizontal="center", vertical="center")

                width = max([len(str(col_name)), *(len(str(v)) for v in df[col_name].head(200))])
                ws.column_dimensions[get_column_letter(col_idx)].width = min(
                    width + 2, _MAX_COLUMN_WIDTH
                )

                fmt = COLUMN_FORMATS.get(col_name)
                if not fmt:
                    continue
                for row_idx in range(2, len(df) + 2):
                    cell = ws.cell(row=row_idx, column=col_idx)
                    if "number_format" in fmt:
                        cell.number_format = fmt["number_format"]
                    if "alignment" in fmt:
                        cell.alignment = fmt["alignment"]

            ws.freeze_panes = "A2"
            wb.save(file_path)
            logger.info("excel_written", path=str(file_path), rows=len(df), columns=len(column_names))
        finally:
            wb.close()
