"""Run independent text-analysis heuristics and join them into one record.

The heuristics themselves (keyword extraction, topic matching, summarizing,
...) live with the caller. Each is a plain callable ``f(text) -> value``
registered under the AnalysisRecord field it fills. They share no state, so
they run concurrently and are joined once all have finished.
"""

import asyncio
import logging

from .models import AnalysisRecord

logger = logging.getLogger(__name__)

# Value used for a field whose extractor failed or was not supplied
FIELD_DEFAULTS = {
    "topics": list,
    "keywords": list,
    "summary": str,
    "findings": list,
    "methodology": list,
    "sentiment": lambda: None,
    "citations": list,
    "entities": list,
}


async def _run_one(name, extractor, text):
    try:
        return await asyncio.to_thread(extractor, text)
    except Exception as e:
        logger.warning("Analysis step %r failed: %s", name, e)
        return FIELD_DEFAULTS.get(name, lambda: None)()


async def run_analysis(text, extractors):
    """Fan out ``extractors`` over ``text`` and join the results.

    Args:
        text: document text
        extractors: dict mapping AnalysisRecord field name -> callable(text)

    Returns:
        AnalysisRecord. Fields without an extractor, or whose extractor
        raised, get their empty default. Unknown field names go to ``extra``.
    """
    names = list(extractors)
    results = await asyncio.gather(
        *(_run_one(name, extractors[name], text) for name in names)
    )
    return AnalysisRecord.from_dict(dict(zip(names, results)))


def analyze(text, extractors):
    """Synchronous wrapper around run_analysis()."""
    return asyncio.run(run_analysis(text, extractors))
