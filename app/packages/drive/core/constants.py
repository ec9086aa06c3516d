"""常量定义：集中维护状态码、认证与文件树相关的固定取值。"""

HTTP_STATUS_OK = 200
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_CONFLICT = 409

ACCESS_TOKEN_TYPE = "bearer"

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"
DEFAULT_ADMIN_NICKNAME = "管理员"

# 祖先链回溯的最大跳数，超过即视为父指针成环
MAX_ANCESTOR_HOPS = 1000

# 存储路径前缀：根目录文件放在 root/，子目录文件放在 folder_<id>/
ROOT_STORAGE_FOLDER = "root"
THUMBNAIL_STORAGE_FOLDER = "thumbnails"

SHARE_TOKEN_BYTES = 32
SHARE_RESOLVE_PATH = "/share"

# 对外统一的分享失效文案：过期与不存在不做区分
SHARE_LINK_INVALID_MSG = "该分享链接已失效"

VIEW_STATE_TTL_SECONDS = 24 * 3600
