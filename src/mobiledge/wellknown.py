"""Documents served under /.well-known/ for universal links and app links.

Both documents list the URL paths the native apps may open directly:
one per link target type plus the short link path.

Example:
    config = EdgeConfig.from_env()
    aasa = apple_app_site_association(config)
    links = asset_links(config)
"""

from typing import Any

from mobiledge.core.entities.edge_config import EdgeConfig
from mobiledge.core.entities.link import TARGET_TYPES


def app_link_paths(config: EdgeConfig) -> list[str]:
    """URL path patterns handled by the native apps."""
    paths = [f"/{cls.web_path}/*" for cls in TARGET_TYPES.values()]
    paths.append(f"/{config.short_link_path}/*")
    return paths


def apple_app_site_association(config: EdgeConfig) -> dict[str, Any]:
    """Build the apple-app-site-association document."""
    return {
        "applinks": {
            "apps": [],
            "details": [
                {
                    "appID": config.ios_app_id,
                    "paths": app_link_paths(config),
                }
            ],
        }
    }


def asset_links(config: EdgeConfig) -> list[dict[str, Any]]:
    """Build the Digital Asset Links statement list (assetlinks.json)."""
    return [
        {
            "relation": ["delegate_permission/common.handle_all_urls"],
            "target": {
                "namespace": "android_app",
                "package_name": config.android_package,
                "sha256_cert_fingerprints": list(config.android_sha256_fingerprints),
            },
        }
    ]
