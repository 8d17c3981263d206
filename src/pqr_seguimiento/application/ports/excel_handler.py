from pathlib import Path
from typing import Protocol

import pandas as pd


class ExcelWriter(Protocol):
    def write(self, df: pd.DataFrame, file_path: Path, sheet_name: str = "Casos") -> None: ...
