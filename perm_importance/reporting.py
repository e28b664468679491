"""
Tables and plots for importance results.
"""

from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .engine import ImportanceResult
from .utils import format_mean_std


def _feature_labels(result: ImportanceResult) -> list:
    if result.feature_names is not None:
        return list(result.feature_names)
    return [f"feature_{i}" for i in range(result.n_features)]


def importance_frame(result: ImportanceResult) -> pd.DataFrame:
    """
    Convert a result to a DataFrame sorted by mean importance.

    Parameters
    ----------
    result : ImportanceResult
        Output of importance() or PermutationImportance.fit()

    Returns
    -------
    df : pd.DataFrame
        Columns: feature, importance_mean, importance_std (NaN when the
        result is means-only), rank (1 = most important)
    """
    std = result.importances_std
    if std is None:
        std = np.full(result.n_features, np.nan)

    df = pd.DataFrame({
        'feature': _feature_labels(result),
        'importance_mean': result.importances_mean,
        'importance_std': std,
    })
    df = df.sort_values('importance_mean', ascending=False, kind='stable').reset_index(drop=True)
    df['rank'] = np.arange(1, len(df) + 1)
    return df


def format_importance_table(result: ImportanceResult, precision: int = 4) -> str:
    """
    Format a result as a fixed-width text table, most important first.

    Returns
    -------
    table_str : str
    """
    df = importance_frame(result)
    has_std = result.importances_std is not None

    lines = []
    lines.append("=" * 60)
    lines.append(
        f"Permutation importance ({result.score_kind.value}, "
        f"{result.trial_count} trials, baseline {result.baseline_score:.{precision}g})"
    )
    lines.append("=" * 60)
    lines.append(f"{'Rank':<6} {'Feature':<24} {'Importance':<24}")
    lines.append("-" * 60)

    for row in df.itertuples(index=False):
        std = row.importance_std if has_std else None
        value = format_mean_std(row.importance_mean, std, precision=precision)
        lines.append(f"{row.rank:<6} {str(row.feature):<24} {value:<24}")

    lines.append("=" * 60)
    return "\n".join(lines)


def print_importances(result: ImportanceResult, title: Optional[str] = None):
    """Print a result table, optionally under a title."""
    if title:
        print(f"\n{title}")
        print("=" * len(title))

    print(format_importance_table(result))
    print()


def plot_importances(
    result: ImportanceResult,
    save_path: Optional[str] = None,
    title: str = "Permutation Importance",
    figsize: tuple = (10, 6)
):
    """
    Plot mean importances as horizontal bars with std error bars.

    Parameters
    ----------
    result : ImportanceResult
        Result to plot
    save_path : str, optional
        Path to save figure; the figure is shown instead when omitted
    title : str, default="Permutation Importance"
        Figure title
    figsize : tuple, default=(10, 6)
        Figure size

    Returns
    -------
    fig : matplotlib.figure.Figure
    """
    df = importance_frame(result)

    sns.set_style("whitegrid")
    fig, ax = plt.subplots(figsize=figsize)

    sns.barplot(data=df, x='importance_mean', y='feature', color='steelblue', ax=ax)
    if result.importances_std is not None:
        ax.errorbar(
            df['importance_mean'], np.arange(len(df)),
            xerr=df['importance_std'], fmt='none', ecolor='black', capsize=3
        )

    ax.axvline(0, color='gray', linewidth=1)
    ax.set_xlabel(f"Importance ({result.score_kind.value})", fontsize=12)
    ax.set_ylabel('Feature', fontsize=12)
    ax.set_title(title, fontsize=14)

    plt.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved importance plot to: {save_path}")
    else:
        plt.show()

    plt.close(fig)
    return fig
