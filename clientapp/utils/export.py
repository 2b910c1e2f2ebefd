# clientapp/utils/export.py
# ----------------------------------------------------------
# Downline workbook (openpyxl)
# ----------------------------------------------------------

import openpyxl
from openpyxl.styles import Border, Font, PatternFill, Side

from clientapp.services import downline, leg_counts

HEADERS = ["Member ID", "Name", "Package", "Parent ID", "Position", "Email", "Mobile", "Joined"]


def build_downline_workbook(member):
    """One sheet listing the downline of `member`, one summary sheet."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Downline"

    # Style presets
    header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
    thin = Side(border_style="thin", color="000000")
    border = Border(top=thin, left=thin, right=thin, bottom=thin)

    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = header_fill
        cell.border = border

    parent_ids = {member.pk: member.member_id}
    rows = downline(member.member_id)
    for m in rows:
        parent_ids[m.pk] = m.member_id

    for m in rows:
        ws.append([
            m.member_id,
            m.name,
            m.package or "",
            parent_ids.get(m.parent_id, ""),
            m.position or "",
            m.email or "",
            m.mobile or "",
            m.created_at.strftime("%Y-%m-%d %H:%M") if m.created_at else "",
        ])

    for column, width in zip("ABCDEFGH", (38, 24, 10, 38, 9, 28, 12, 17)):
        ws.column_dimensions[column].width = width

    summary = wb.create_sheet(title="Summary")
    counts = leg_counts(member.member_id)
    summary.append(["Member ID", member.member_id])
    summary.append(["Name", member.name])
    summary.append(["Downline size", len(rows)])
    summary.append(["Left leg", counts["left"]])
    summary.append(["Right leg", counts["right"]])
    for cell in summary["A"]:
        cell.font = Font(bold=True)

    return wb
