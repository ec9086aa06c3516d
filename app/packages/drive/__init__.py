"""文件管理业务包：目录树、批量操作、分享链接与分类。"""

from starlette.exceptions import HTTPException

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler
from .core.logger import logger, setup_logging
from .core.responses import create_response
from .db.init_db import init_db

package = AppPackage(
    name="drive",
    api_router=api_router,
    get_settings=get_settings,
    logger=logger,
    setup_logging=setup_logging,
    init_db=init_db,
    create_response=create_response,
    exception_handlers={
        HTTPException: http_exception_handler,
        Exception: generic_exception_handler,
    },
)
