# utils/exports.py

"""
DataFrame export utilities for the download buttons:
Excel (xlsxwriter), CSV (UTF-8 with BOM, `;` for Excel pt-BR), JSON.
"""

import io

import pandas as pd

EXPORT_FORMATS = {
    "Excel": ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
    "CSV": ("csv", "text/csv"),
    "JSON": ("json", "application/json"),
}


def df_to_excel_bytes(df: pd.DataFrame, sheet_name: str = "Dados") -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name[:31])
        sheet = writer.sheets[sheet_name[:31]]
        for i, col in enumerate(df.columns):
            width = max([len(str(col))] + [len(str(v)) for v in df[col].head(200)])
            sheet.set_column(i, i, min(width + 2, 50))
    return output.getvalue()


def df_to_csv_bytes(df: pd.DataFrame, sep: str = ";") -> bytes:
    return df.to_csv(index=False, sep=sep).encode("utf-8-sig")


def df_to_json_bytes(df: pd.DataFrame) -> bytes:
    return df.to_json(orient="records", force_ascii=False, date_format="iso").encode("utf-8")


def download_payload(df: pd.DataFrame, fmt: str, basename: str):
    """(data, file name, mime) for st.download_button."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Formato de exportação desconhecido: {fmt}")
    ext, mime = EXPORT_FORMATS[fmt]

    if fmt == "Excel":
        data = df_to_excel_bytes(df, sheet_name=basename)
    elif fmt == "CSV":
        data = df_to_csv_bytes(df)
    else:
        data = df_to_json_bytes(df)

    return data, f"{basename}.{ext}", mime
