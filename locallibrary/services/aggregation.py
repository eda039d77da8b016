import asyncio
import logging
from typing import Any, Awaitable, Dict, Mapping

logger = logging.getLogger(__name__)


async def parallel(operations: Mapping[str, Awaitable[Any]]) -> Dict[str, Any]:
    """Adlandırılmış bağımsız okuma işlemlerini eşzamanlı çalıştır.

    Hepsi başarılı olursa aynı adlarla sonuç sözlüğünü döndürür. Herhangi biri
    başarısız olursa ilk hata yükseltilir, devam eden diğer işlemler iptal
    edilir ve sonuçları atılır; kısmi başarı yoktur.
    """
    if not operations:
        return {}

    tasks = {asyncio.ensure_future(op): name for name, op in operations.items()}
    results: Dict[str, Any] = {}
    pending = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            # Aynı turda biten görevler için belirleyici sıra: oluşturulma sırası
            finished = [t for t in tasks if t in done]
            failures = [t for t in finished if t.exception() is not None]
            if failures:
                exc = failures[0].exception()
                logger.debug(f"Paralel işlem '{tasks[failures[0]]}' başarısız: {exc!r}")
                raise exc
            for task in finished:
                results[tasks[task]] = task.result()
    finally:
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    return {name: results[name] for name in operations}
