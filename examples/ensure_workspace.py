#!/usr/bin/env python3
"""
prworkspace - Ensure a PR workspace

This example materializes a pull/merge request checkout the way a review
bot would before handing the code to an analyzer:
1. Load configuration from SC_* environment variables
2. Parse the PR URL and pick the provider
3. Clone or update the local checkout to the requested head SHA

Usage:
    SC_GITHUB_TOKEN=... python examples/ensure_workspace.py \\
        https://github.com/acme/widgets/pull/7 <head-sha>
"""

import logging
import sys

from prworkspace import (
    Deadline,
    PRRepositoryManager,
    RepositoryRequest,
    WorkspaceConfig,
    WorkspaceError,
    configure_logging,
    default_registry,
)
from prworkspace.exceptions import AuthenticationError, RefNotFoundError
from prworkspace.prurl import PRURLParser


def main() -> int:
    """Run the example."""
    if len(sys.argv) != 3:
        print(__doc__)
        return 2
    pr_url, head_sha = sys.argv[1], sys.argv[2]

    configure_logging(level=logging.INFO, git_level=logging.DEBUG)

    # Step 1: configuration
    config = WorkspaceConfig.from_env()
    registry = default_registry()
    providers = config.build_providers(registry)
    print(f"1. Workspace root: {config.workspace_root}")
    print(f"   Configured providers: {sorted(providers) or 'none (anonymous access)'}")

    # Step 2: resolve the provider
    parser = PRURLParser()
    parser.register_hosts_from_config(config)
    info = parser.parse(pr_url)
    provider = providers.get(info.provider) or registry.create(info.provider)
    print(f"2. Parsed {info} -> {provider!r}")

    # Step 3: ensure the checkout, bounded by an overall deadline
    manager = PRRepositoryManager(git_timeout=config.git_timeout, locking=True)
    options = config.options_for(info.provider)
    request = RepositoryRequest(
        provider=provider,
        owner=info.owner,
        repo=info.repo,
        pr_number=info.number,
        head_sha=head_sha,
        workspace_root=config.workspace_root,
        token=options.token,
        insecure_skip_verify=options.insecure_skip_verify,
    )

    try:
        path = manager.ensure_repository(request, deadline=Deadline.after(15 * 60))
    except AuthenticationError as e:
        print(f"   Authentication failed, set {e.token_env_var}: {e}")
        return 1
    except RefNotFoundError as e:
        print(f"   PR ref not available: {e}")
        return 1
    except WorkspaceError as e:
        print(f"   Failed [{e.code}]: {e}")
        return 1

    print(f"3. Workspace ready at {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
