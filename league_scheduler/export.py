"""
Export functionality for writing scheduling results to JSON and Excel.
"""

import pandas as pd

from .config import SchedulerProblemSpec
from .models import SchedulerResult


def write_json(result: SchedulerResult, output_path: str) -> None:
    """Write the result's plain-data form as stable JSON."""
    with open(output_path, 'w') as f:
        f.write(result.to_json(indent=2))
        f.write('\n')


def write_excel(result: SchedulerResult, spec: SchedulerProblemSpec, output_path: str) -> None:
    """
    Write a result to an Excel file with summary sheets.

    Args:
        result: Result to export
        spec: Problem spec the result was produced from
        output_path: Path to output Excel file
    """
    with pd.ExcelWriter(output_path, engine='xlsxwriter') as writer:
        _write_assignments(result, writer)
        _write_unscheduled(result, writer)
        _write_field_usage(result, spec, writer)
        _write_umpire_load(result, spec, writer)


def _write_assignments(result: SchedulerResult, writer) -> None:
    """Write the main schedule sheet."""
    sheet_name = 'Assignments'
    df = result.to_dataframe()

    if df.empty:
        df = pd.DataFrame(columns=['Game ID', 'Field', 'Slot', 'Date', 'Start Time', 'End Time', 'Minutes', 'Umpires'])
    else:
        df = df.copy()
        df['Date'] = df['Date'].apply(lambda x: x.strftime('%m/%d/%Y'))
        df['Start Time'] = df['Start Time'].apply(lambda x: x.strftime('%H:%M'))
        df['End Time'] = df['End Time'].apply(lambda x: x.strftime('%H:%M'))

    df.to_excel(writer, sheet_name=sheet_name, index=False)
    _format_worksheet(writer.sheets[sheet_name], writer.book, df)

    worksheet = writer.sheets[sheet_name]
    summary_row = len(df) + 3
    metrics = result.metrics
    worksheet.write(summary_row, 0, 'Run')
    worksheet.write(summary_row, 1, result.run_id)
    worksheet.write(summary_row + 1, 0, 'Status')
    worksheet.write(summary_row + 1, 1, result.status.value)
    worksheet.write(summary_row + 2, 0, f'Scheduled {metrics.scheduled_games} of {metrics.total_games} games')


def _write_unscheduled(result: SchedulerResult, writer) -> None:
    sheet_name = 'Unscheduled'
    df = pd.DataFrame(
        [
            {'Game ID': u.game_id, 'Reason': u.reason.value, 'Description': u.description}
            for u in result.unscheduled
        ],
        columns=['Game ID', 'Reason', 'Description'],
    )
    df.to_excel(writer, sheet_name=sheet_name, index=False)
    _format_worksheet(writer.sheets[sheet_name], writer.book, df)


def _write_field_usage(result: SchedulerResult, spec: SchedulerProblemSpec, writer) -> None:
    """Write games and booked minutes per field."""
    sheet_name = 'Field Usage'

    rows = []
    for f in spec.fields:
        assignments = result.get_field_assignments(f.id)
        rows.append({
            'Field': f.id,
            'Name': f.name,
            'Lights': f.properties.has_lights,
            'Max Parallel Games': f.properties.max_parallel_games,
            'Games': len(assignments),
            'Booked Minutes': sum(
                int((a.end_time - a.start_time).total_seconds() // 60) for a in assignments
            ),
        })

    df = pd.DataFrame(rows, columns=['Field', 'Name', 'Lights', 'Max Parallel Games', 'Games', 'Booked Minutes'])
    df.to_excel(writer, sheet_name=sheet_name, index=False)
    _format_worksheet(writer.sheets[sheet_name], writer.book, df)


def _write_umpire_load(result: SchedulerResult, spec: SchedulerProblemSpec, writer) -> None:
    """Write games per umpire per day."""
    sheet_name = 'Umpire Load'

    rows = []
    for umpire in spec.umpires:
        for assignment in result.get_umpire_assignments(umpire.id):
            rows.append({
                'Umpire': umpire.id,
                'Name': umpire.name or '',
                'Date': assignment.start_time.date(),
                'Game ID': assignment.game_id,
            })

    if rows:
        df = pd.DataFrame(rows)
        df = df.groupby(['Umpire', 'Name', 'Date']).size().reset_index(name='Games')
        df['Date'] = df['Date'].apply(lambda x: x.strftime('%m/%d/%Y'))
    else:
        df = pd.DataFrame(columns=['Umpire', 'Name', 'Date', 'Games'])

    df.to_excel(writer, sheet_name=sheet_name, index=False)
    _format_worksheet(writer.sheets[sheet_name], writer.book, df)


def _format_worksheet(worksheet, workbook, df: pd.DataFrame) -> None:
    """Apply header formatting and column widths."""
    header_format = workbook.add_format({
        'bold': True,
        'text_wrap': True,
        'valign': 'top',
        'fg_color': '#D7E4BC',
        'border': 1
    })

    column_widths = {
        'Game ID': 14,
        'Field': 14,
        'Slot': 24,
        'Date': 12,
        'Umpires': 24,
        'Description': 50,
    }

    for i, col in enumerate(df.columns):
        worksheet.set_column(i, i, column_widths.get(col, 12))

    for col_num, value in enumerate(df.columns.values):
        worksheet.write(0, col_num, value, header_format)
