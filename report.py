# report.py
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "path", "permalink", "status", "reason",
    "vocabulary_size", "unknown_words", "neighbours", "best_score",
]


class RunReport:
    """Summarizes a finished pipeline run: timings, skipped inputs and score distribution."""
    def __init__(self, result):
        self.result = result

    def best_scores(self):
        """Score of each article's top neighbour, for articles that have one."""
        matrix = self.result.matrix
        return {
            permalink: matrix.score(permalink, neighbours[0])
            for permalink, neighbours in self.result.top_k.items()
            if neighbours
        }

    def score_summary(self):
        """Mean / median / p95 / min of the best-neighbour scores (None when no article has a neighbour)."""
        scores = list(self.best_scores().values())
        if not scores:
            return {"mean": None, "p50": None, "p95": None, "min": None, "articles_scored": 0}
        return {
            "mean": float(np.mean(scores)),
            "p50": float(np.percentile(scores, 50)),
            "p95": float(np.percentile(scores, 95)),
            "min": float(np.min(scores)),
            "articles_scored": len(scores),
        }

    def to_dataframe(self):
        """One row per processed or skipped input file."""
        best = self.best_scores()
        rows = []
        for article in self.result.articles:
            rows.append({
                "path": article.path,
                "permalink": article.permalink,
                "status": "ok",
                "reason": "",
                "vocabulary_size": article.vocabulary_size,
                "unknown_words": article.unknown_words,
                "neighbours": len(self.result.top_k.get(article.permalink, [])),
                "best_score": best.get(article.permalink, np.nan),
            })
        for skipped in self.result.skipped:
            rows.append({
                "path": skipped.path,
                "permalink": "",
                "status": skipped.kind,
                "reason": skipped.reason,
                "vocabulary_size": 0,
                "unknown_words": 0,
                "neighbours": 0,
                "best_score": np.nan,
            })
        return pd.DataFrame(rows, columns=REPORT_COLUMNS).sort_values("path", ignore_index=True)

    def save_csv(self, path):
        self.to_dataframe().to_csv(path, index=False)
        logger.info("Run report saved to %s", path)

    def log_summary(self):
        timings = ", ".join(f"{stage}={seconds:.2f}s" for stage, seconds in self.result.timings.items())
        logger.info(
            "Processed %d articles, skipped %d (%s)",
            len(self.result.articles), len(self.result.skipped), timings or "no timings",
        )
        for skipped in self.result.skipped:
            logger.info("  skipped %s: %s", skipped.path, skipped.reason)
        summary = self.score_summary()
        if summary["articles_scored"]:
            logger.info(
                "Best-neighbour scores: mean=%.3f p50=%.3f p95=%.3f min=%.3f",
                summary["mean"], summary["p50"], summary["p95"], summary["min"],
            )
