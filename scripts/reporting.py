"""
Tables, maps and charts for the redlining analysis.
Everything here is presentation; each function writes one file.
"""

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from mpl_toolkits.axes_grid1.anchored_artists import AnchoredSizeBar

from config import (
    GRADE_COL, GRADES, GRADE_COLORS, EJ_INDICATORS, EJ_INDICATOR_LABELS,
    BIRD_BIN_COL, BIRD_COUNT_BREAKS,
)
from aggregation import bucket_labels


# ============================================================================
# 1. TABLES
# ============================================================================

def format_table(df):
    """String-formatted copy of a summary table for display."""
    df_display = df.copy()

    for col in df_display.columns:
        if not pd.api.types.is_numeric_dtype(df_display[col]):
            continue
        if 'percent' in col.lower():
            df_display[col] = df_display[col].apply(lambda x: f"{x:.1f}%" if pd.notna(x) else "")
        elif pd.api.types.is_integer_dtype(df_display[col]):
            df_display[col] = df_display[col].apply(lambda x: f"{x:,}")
        else:
            df_display[col] = df_display[col].apply(lambda x: f"{x:,.2f}" if pd.notna(x) else "")

    return df_display.fillna("")


def save_table_csv(df, output_path):
    df.to_csv(output_path, index=False)
    print(f"  Saved: {output_path.name}")


def create_summary_table(df, title, output_path):
    """Create a formatted table figure from a DataFrame."""
    if len(df) == 0:
        print(f"  Skipped empty table: {title}")
        return

    df_display = format_table(df)

    fig, ax = plt.subplots(figsize=(10, max(3, len(df) * 0.6)))
    ax.axis('tight')
    ax.axis('off')

    table = ax.table(cellText=df_display.values,
                     colLabels=df_display.columns,
                     cellLoc='center',
                     loc='center',
                     bbox=[0, 0, 1, 1])

    table.auto_set_font_size(False)
    table.set_fontsize(10)
    table.scale(1, 2)

    for i in range(len(df_display.columns)):
        table[(0, i)].set_facecolor('#3498db')
        table[(0, i)].set_text_props(weight='bold', color='white')

    for i in range(1, len(df_display) + 1):
        for j in range(len(df_display.columns)):
            table[(i, j)].set_facecolor('#ecf0f1' if i % 2 == 0 else 'white')

    fig.suptitle(title, fontsize=14, fontweight='bold', y=0.98)

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    plt.close()
    print(f"  Created: {output_path.name}")


# ============================================================================
# 2. MAPS
# ============================================================================

def add_map_decorations(ax, bar_length_m=10000, bar_label="10 km"):
    """North arrow and scale bar. Assumes a projected CRS in meters."""
    ax.annotate('N', xy=(0.95, 0.95), xytext=(0.95, 0.85),
                xycoords='axes fraction', textcoords='axes fraction',
                ha='center', va='center', fontsize=14, fontweight='bold',
                arrowprops=dict(facecolor='black', width=4, headwidth=12))

    scalebar = AnchoredSizeBar(ax.transData, bar_length_m, bar_label, 'lower right',
                               pad=0.5, sep=4, frameon=True, size_vertical=bar_length_m / 50)
    ax.add_artist(scalebar)


def plot_redlining_map(districts, blocks, output_path, grade_col=GRADE_COL):
    """HOLC districts coloured by grade over census block group outlines."""
    fig, ax = plt.subplots(figsize=(14, 12))

    blocks.boundary.plot(ax=ax, color='lightgray', linewidth=0.1)

    handles = []
    for grade in GRADES:
        subset = districts[districts[grade_col] == grade]
        color = GRADE_COLORS[grade]
        if len(subset) > 0:
            subset.plot(ax=ax, color=color, edgecolor='black', linewidth=0.2)
        handles.append(mpatches.Patch(facecolor=color, edgecolor='black', label=grade))

    ungraded = districts[districts[grade_col].isna()]
    if len(ungraded) > 0:
        ungraded.plot(ax=ax, color='white', edgecolor='black', linewidth=0.2, hatch='//')
        handles.append(mpatches.Patch(facecolor='white', edgecolor='black', hatch='//',
                                      label='Ungraded'))

    # Zoom to the districts; the county extends far beyond them
    minx, miny, maxx, maxy = districts.total_bounds
    pad_x, pad_y = (maxx - minx) * 0.05, (maxy - miny) * 0.05
    ax.set_xlim(minx - pad_x, maxx + pad_x)
    ax.set_ylim(miny - pad_y, maxy + pad_y)

    ax.set_title("Historical HOLC Redlining Grades\nLos Angeles County",
                 fontsize=16, fontweight='bold', pad=20)
    ax.legend(handles=handles, loc='upper left', frameon=True, fancybox=True, shadow=True,
              title='HOLC Grade', title_fontsize=11, fontsize=10)
    ax.axis('off')
    add_map_decorations(ax)

    ax.text(0.02, 0.02, 'Data: Mapping Inequality; EPA EJScreen 2023',
            transform=ax.transAxes, fontsize=10,
            bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    plt.close()
    print(f"  Saved: {output_path.name}")


def plot_bird_choropleth(districts, output_path, year=None, bin_col=BIRD_BIN_COL,
                         breaks=BIRD_COUNT_BREAKS):
    """HOLC districts shaded by binned bird-observation counts."""
    labels = bucket_labels(breaks)
    colors = matplotlib.colormaps['YlGn'](np.linspace(0.2, 0.9, len(labels)))

    fig, ax = plt.subplots(figsize=(14, 12))

    handles = []
    for label, color in zip(labels, colors):
        subset = districts[districts[bin_col] == label]
        if len(subset) > 0:
            subset.plot(ax=ax, color=color, edgecolor='gray', linewidth=0.2)
        handles.append(mpatches.Patch(facecolor=color, edgecolor='gray', label=label))

    outside = districts[districts[bin_col].isna()]
    if len(outside) > 0:
        outside.plot(ax=ax, color='lightgray', edgecolor='gray', linewidth=0.2)
        handles.append(mpatches.Patch(facecolor='lightgray', edgecolor='gray',
                                      label=f'> {breaks[-1]}'))

    year_label = f" ({year})" if year is not None else ""
    ax.set_title(f"Bird Observations per HOLC District{year_label}\nLos Angeles County",
                 fontsize=16, fontweight='bold', pad=20)
    ax.legend(handles=handles, loc='upper left', frameon=True, fancybox=True, shadow=True,
              title='Observations', title_fontsize=11, fontsize=10)
    ax.axis('off')
    add_map_decorations(ax)

    ax.text(0.02, 0.02, 'Data: GBIF; Mapping Inequality',
            transform=ax.transAxes, fontsize=10,
            bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    plt.close()
    print(f"  Saved: {output_path.name}")


# ============================================================================
# 3. BAR CHARTS
# ============================================================================

def plot_indicator_bars(means, output_path, grade_col=GRADE_COL, columns=EJ_INDICATORS):
    """One panel per EJ indicator, bars by grade."""
    fig, axes = plt.subplots(1, len(columns), figsize=(5 * len(columns), 5))
    axes = np.atleast_1d(axes)
    colors = [GRADE_COLORS.get(g, 'gray') for g in means[grade_col]]

    for ax, col in zip(axes, columns):
        ax.bar(means[grade_col].astype(str), means[col], color=colors, edgecolor='black')
        ax.set_title(EJ_INDICATOR_LABELS.get(col, col), fontsize=12, fontweight='bold')
        ax.set_xlabel('HOLC Grade', fontsize=11)
        ax.grid(True, alpha=0.3, axis='y')

    fig.suptitle('Mean EJScreen Indicators by HOLC Grade', fontsize=14, fontweight='bold')
    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    plt.close()
    print(f"  Saved: {output_path.name}")


def plot_observation_bars(percentages, output_path, year=None, grade_col=GRADE_COL,
                          value_col='grade_percent'):
    """Share of bird observations falling in each grade."""
    fig, ax = plt.subplots(figsize=(10, 6))
    colors = [GRADE_COLORS.get(g, 'gray') for g in percentages[grade_col]]

    ax.bar(percentages[grade_col].astype(str), percentages[value_col],
           color=colors, edgecolor='black')
    for x, y in zip(percentages[grade_col].astype(str), percentages[value_col]):
        ax.text(x, y, f"{y:.1f}%", ha='center', va='bottom', fontsize=10)

    year_label = f" ({year})" if year is not None else ""
    ax.set_title(f'Bird Observations by HOLC Grade{year_label}', fontsize=14, fontweight='bold')
    ax.set_xlabel('HOLC Grade', fontsize=12)
    ax.set_ylabel('% of Observations in Graded Districts', fontsize=12)
    ax.grid(True, alpha=0.3, axis='y')

    plt.tight_layout()
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    plt.close()
    print(f"  Saved: {output_path.name}")
