"""One-time repository setup for Release Branch Isolation.

Checks the hook and workflow files are present, wires the `git:*` npm scripts
to the rbi CLI, creates main/staging, commits the setup files and locks them
in .gitignore. Every step is safe to re-run.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Literal

from rbi.core.config import Config
from rbi.core.result import Err, Ok, Result
from rbi.core.structured import StrDict, as_str_dict, get_table
from rbi.core.workspace import Workspace
from rbi.output.console import ConsoleProtocol, Style
from rbi.platform.files import atomic_write_text, read_text_or_empty
from rbi.platform.process import run_silent
from rbi.services.base import ConfirmFn, WorkflowService
from rbi.services.errors import WorkflowError, from_git_error

PromptFn = Callable[[str], str]
PackageManager = Literal["pnpm", "npm"]

REQUIRED_HOOKS = (
    ".husky/pre-commit",
    ".husky/pre-push",
    ".husky/pre-merge-commit",
    ".husky/commit-msg",
)

REQUIRED_CONFIGS = (
    "commitlint.config.js",
    ".gitignore",
)

REQUIRED_WORKFLOWS = (
    ".github/workflows/branch-enforcement.yml",
    ".github/workflows/validate-pr-title.yml",
    ".github/workflows/validate-commits.yml",
    ".github/workflows/sync-staging.yml",
    ".github/workflows/auto-tag-release.yml",
)

DEV_DEPENDENCIES = (
    "husky",
    "@commitlint/cli",
    "@commitlint/config-conventional",
)

REQUIRED_SCRIPTS: dict[str, str] = {
    "prepare": "husky",
    "git:feature": "rbi feature",
    "git:sync": "rbi sync",
    "git:release": "rbi release",
    "git:sync-feature": "rbi sync-feature",
    "git:to-staging": "rbi to-staging",
    "git:ship": "rbi ship",
    "git:hotfix": "rbi hotfix",
    "git:status": "rbi status",
    "git:setup": "rbi setup",
    "git:setup-rulesets": "rbi setup-rulesets",
    "git:merge-staging": "rbi merge-staging",
    "git:merge-main": "rbi merge-main",
}

SETUP_FILES = (
    ".husky/",
    ".github/",
    "commitlint.config.js",
    ".gitignore",
    "package.json",
)

LOCK_PATTERNS = (
    ".husky/",
    ".github/",
    "commitlint.config.js",
)

LOCK_HEADER = "# GIT and GITHUB"

INITIAL_COMMIT = "chore: initial commit - Release Branch Isolation setup"
SETUP_COMMIT = "chore(CU-setup): add Release Branch Isolation setup files"
LOCK_COMMIT = "chore(CU-setup): lock setup files in .gitignore"


def default_package_json() -> StrDict:
    return {
        "name": "my-project",
        "version": "1.0.0",
        "private": True,
        "scripts": {},
        "devDependencies": {},
    }


@dataclass(frozen=True, slots=True)
class Additions:
    """What an idempotent update added, and what was already there."""

    added: tuple[str, ...]
    existing: tuple[str, ...]


def missing_dev_dependencies(pkg: Mapping[str, object]) -> list[str]:
    """DEV_DEPENDENCIES not declared in dependencies or devDependencies."""
    declared: set[str] = set()
    for key in ("dependencies", "devDependencies"):
        table = get_table(pkg, key)
        if table is not None:
            declared.update(table)
    return [dep for dep in DEV_DEPENDENCIES if dep not in declared]


def ensure_scripts(pkg: StrDict) -> Additions:
    """Add missing REQUIRED_SCRIPTS to pkg["scripts"] in place.

    Existing entries are never overwritten, even if they differ.
    """
    scripts = get_table(pkg, "scripts")
    if scripts is None:
        scripts = {}
        pkg["scripts"] = scripts

    added: list[str] = []
    existing: list[str] = []
    for name, command in REQUIRED_SCRIPTS.items():
        if scripts.get(name):
            existing.append(name)
        else:
            scripts[name] = command
            added.append(name)
    return Additions(added=tuple(added), existing=tuple(existing))


def lock_patterns(text: str) -> tuple[str, Additions]:
    """Append missing LOCK_PATTERNS to .gitignore text under LOCK_HEADER."""
    lines = text.splitlines()
    present = {ln.strip() for ln in lines}
    missing = [p for p in LOCK_PATTERNS if p not in present]
    existing = [p for p in LOCK_PATTERNS if p in present]
    if not missing:
        return text, Additions(added=(), existing=tuple(existing))

    out = text
    if out and not out.endswith("\n"):
        out += "\n"
    if LOCK_HEADER not in present:
        out += f"\n{LOCK_HEADER}\n"
    out += "".join(f"{p}\n" for p in missing)
    return out, Additions(added=tuple(missing), existing=tuple(existing))


def detect_package_manager() -> PackageManager | None:
    if shutil.which("pnpm"):
        return "pnpm"
    if shutil.which("npm"):
        return "npm"
    return None


class SetupService(WorkflowService):
    def __init__(
        self,
        *,
        workspace: Workspace,
        config: Config,
        console: ConsoleProtocol,
        confirm: ConfirmFn | None = None,
        prompt: PromptFn | None = None,
    ) -> None:
        super().__init__(workspace=workspace, config=config, console=console, confirm=confirm)
        self._prompt = prompt

    def setup(self, *, skip_install: bool = False, skip_remote: bool = False) -> Result[None, WorkflowError]:
        self._console.banner("Git Repository Setup\nRelease Branch Isolation Strategy", Style.INFO)
        self._console.newline()

        steps: list[tuple[str, Callable[[], Result[None, WorkflowError]]]] = [
            ("Step 1: Verifying required files...", self.verify_required_files),
            ("Step 2: Checking dependencies...", lambda: self.ensure_dependencies(install=not skip_install)),
            ("Step 3: Configuring package.json scripts...", self.configure_scripts),
            ("Step 4: Setting up Husky...", lambda: self.run_husky(enabled=not skip_install)),
            ("Step 5: Setting up Git branches...", self.ensure_branches),
            ("Step 6: Committing setup files...", self.commit_setup_files),
            ("Step 6.1: Locking setup files in .gitignore...", self.lock_setup_files),
        ]
        if not skip_remote:
            steps.append(("Step 7: Remote repository setup...", self.configure_remote))

        for title, run_step in steps:
            self._console.header(title)
            result = run_step()
            if isinstance(result, Err):
                return result
            self._console.newline()

        self._console.banner("Setup Complete!")
        self.next_steps(
            "Next steps:",
            [
                "1. (Admin) Configure GitHub Rulesets:",
                "     pnpm run git:setup-rulesets",
                "",
                "2. Start your first feature:",
                "     pnpm run git:feature <task-id> <description>",
            ],
        )
        return Ok(None)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def verify_required_files(self) -> Result[None, WorkflowError]:
        root = self._workspace.root
        missing: list[str] = []
        for rel in (*REQUIRED_HOOKS, *REQUIRED_CONFIGS, *REQUIRED_WORKFLOWS):
            if (root / rel).is_file():
                self._console.success(rel)
            else:
                self._console.error(f"{rel} (MISSING)")
                missing.append(rel)

        if missing:
            return Err(
                WorkflowError(
                    kind="missing_files",
                    message="Missing required files. Cannot continue.",
                    hint="Please ensure all required files are copied to this repository.",
                    guidance=tuple(missing),
                )
            )
        return Ok(None)

    def ensure_dependencies(self, *, install: bool = True) -> Result[None, WorkflowError]:
        path = self._workspace.package_json
        if not path.exists():
            self._console.warning("No package.json found. Creating one...")
            written = self._write_package_json(default_package_json())
            if isinstance(written, Err):
                return written

        pkg_r = self._read_package_json()
        if isinstance(pkg_r, Err):
            return pkg_r

        missing = missing_dev_dependencies(pkg_r.value)
        if not missing:
            self._console.success("All dependencies present")
            return Ok(None)

        if not install:
            self._console.warning(f"Skipping install of: {' '.join(missing)}")
            return Ok(None)

        manager = detect_package_manager()
        if manager is None:
            return Err(
                WorkflowError(
                    kind="no_package_manager",
                    message="No package manager found (pnpm or npm required)",
                )
            )

        self.step(f"Installing missing dependencies: {' '.join(missing)}")
        cmd = ["pnpm", "add", "-D", *missing] if manager == "pnpm" else ["npm", "install", "-D", *missing]
        result = run_silent(cmd, cwd=self._workspace.root)
        if isinstance(result, Err):
            return Err(
                WorkflowError(
                    kind="io_failed",
                    message=f"{manager} failed to install dev dependencies",
                    hint=str(result.error),
                )
            )
        return Ok(None)

    def configure_scripts(self) -> Result[None, WorkflowError]:
        pkg_r = self._read_package_json()
        if isinstance(pkg_r, Err):
            return pkg_r
        pkg = pkg_r.value

        update = ensure_scripts(pkg)
        for name in update.existing:
            self._console.success(f"{name} (exists)")
        for name in update.added:
            self._console.print(f"  + Adding {name}", Style.SUCCESS)

        if not update.added:
            return Ok(None)

        written = self._write_package_json(pkg)
        if isinstance(written, Err):
            return written
        self._console.newline()
        self._console.print(f"  Added {len(update.added)} script(s) to package.json")
        return Ok(None)

    def run_husky(self, *, enabled: bool = True) -> Result[None, WorkflowError]:
        if not enabled:
            return Ok(None)
        if shutil.which("pnpm"):
            cmd = ["pnpm", "exec", "husky"]
        elif shutil.which("npx"):
            cmd = ["npx", "husky"]
        else:
            self._console.warning("Neither pnpm nor npx found; run husky manually later")
            return Ok(None)

        result = run_silent(cmd, cwd=self._workspace.root)
        if isinstance(result, Err):
            # Husky needs a .git directory, which step 5 may only now create.
            self._console.warning(f"husky failed: {result.error}")
            self._console.print("Re-run `pnpm run prepare` once setup is complete.", Style.DIM)
            return Ok(None)
        self._console.success("Husky hooks configured")
        return Ok(None)

    def ensure_branches(self) -> Result[None, WorkflowError]:
        repo = self._repo
        if not self._workspace.has_git():
            self._console.warning("No .git folder found. Initializing fresh repository...")
            r = self.git_steps(
                lambda: repo.init(initial_branch=self.main),
                lambda: repo.add(["."]),
                lambda: repo.commit(INITIAL_COMMIT, no_verify=True),
                lambda: repo.create_branch(self.staging),
                lambda: repo.checkout(self.main),
            )
            if isinstance(r, Err):
                return r
            self._print_branches()
            return Ok(None)

        self._console.warning("Existing git repository detected. Adapting...")
        current_r = repo.current_branch()
        current = current_r.value if isinstance(current_r, Ok) else None

        if repo.branch_exists(self.main):
            self._console.success(f"{self.main} branch exists")
            if current != self.main:
                r = self.git(repo.checkout(self.main))
                if isinstance(r, Err):
                    return r
        elif repo.branch_exists("master"):
            self._console.print(f"  -> Renaming master to {self.main}...", Style.WARNING)
            r = self.git_steps(
                lambda: repo.checkout("master"),
                lambda: repo.rename_branch("master", self.main),
            )
            if isinstance(r, Err):
                return r
        else:
            self._console.print(f"  -> Creating {self.main} branch from current HEAD...", Style.WARNING)
            r = self.git(repo.create_branch(self.main))
            if isinstance(r, Err):
                return r

        if repo.branch_exists(self.staging):
            self._console.success(f"{self.staging} branch exists")
        else:
            self._console.print(f"  -> Creating {self.staging} branch...", Style.WARNING)
            r = self.git_steps(
                lambda: repo.create_branch(self.staging),
                lambda: repo.checkout(self.main),
            )
            if isinstance(r, Err):
                return r

        self._print_branches()
        return Ok(None)

    def commit_setup_files(self) -> Result[None, WorkflowError]:
        root = self._workspace.root
        present = [rel for rel in SETUP_FILES if (root / rel).exists()]
        if not present:
            self._console.success("No setup files to commit")
            return Ok(None)

        # -f: the lock patterns may already be in .gitignore
        r = self.git(self._repo.add(present, force=True))
        if isinstance(r, Err):
            return r

        staged = self._repo.has_staged_changes()
        if isinstance(staged, Err):
            return Err(from_git_error(staged.error))
        if not staged.value:
            self._console.success("Setup files already committed")
            return Ok(None)

        self.step("Committing setup files...")
        r = self.git(self._repo.commit(SETUP_COMMIT, no_verify=True))
        if isinstance(r, Err):
            return r
        self._console.success("Setup files committed")
        return Ok(None)

    def lock_setup_files(self) -> Result[None, WorkflowError]:
        path = self._workspace.gitignore
        text, update = lock_patterns(read_text_or_empty(path))
        for pattern in update.existing:
            self._console.success(f"{pattern} already in .gitignore")
        if not update.added:
            return Ok(None)

        try:
            atomic_write_text(path, text)
        except OSError as e:
            return Err(WorkflowError(kind="io_failed", message=f"failed to write {path}: {e}"))
        for pattern in update.added:
            self._console.print(f"  + Added {pattern} to .gitignore", Style.SUCCESS)

        r = self.git(self._repo.add([".gitignore"]))
        if isinstance(r, Err):
            return r
        staged = self._repo.has_staged_changes()
        if isinstance(staged, Ok) and staged.value:
            r = self.git(self._repo.commit(LOCK_COMMIT, no_verify=True))
            if isinstance(r, Err):
                return r
            self._console.success(".gitignore updated and committed")
        return Ok(None)

    def configure_remote(self) -> Result[None, WorkflowError]:
        remote = self.remote
        url = self._repo.remote_url(remote)

        if url is not None:
            self._console.print(f"Current remote: {url}", Style.INFO)
            if self._confirm is not None and not self._confirm("Keep existing remote?"):
                new_url = self._ask_text("Enter new remote URL")
                if new_url:
                    r = self.git(self._repo.set_remote_url(remote, new_url))
                    if isinstance(r, Err):
                        return r
                    url = new_url
                    self.step("Remote updated.")
        else:
            new_url = self._ask_text("Enter remote URL (git@github.com:owner/repo.git)")
            if new_url:
                r = self.git(self._repo.add_remote(remote, new_url))
                if isinstance(r, Err):
                    return r
                url = new_url
                self.step("Remote added.")
            else:
                self._console.warning("Skipped remote setup. Add later with:")
                self._console.print(f"  git remote add {remote} git@github.com:owner/repo.git")

        if url is None or not self.ask("Push branches to remote now?"):
            return Ok(None)

        for branch in (self.main, self.staging):
            self.step(f"Pushing {branch} branch...")
            pushed = self._repo.push(remote, branch, no_verify=True)
            if isinstance(pushed, Err):
                # Not fatal: the remote may already have history.
                self._console.warning(f"Push failed for {branch}: {pushed.error.message}")
                self._console.print(f"You can try: git pull {remote} {branch} --rebase", Style.DIM)
        return Ok(None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ask_text(self, question: str) -> str:
        if self._prompt is None:
            return ""
        return self._prompt(question).strip()

    def _print_branches(self) -> None:
        branches = self._repo.local_branches()
        if isinstance(branches, Err):
            return
        self._console.newline()
        self._console.print("Branches:", Style.SUCCESS)
        for name in branches.value:
            self._console.print(f"  {name}")

    def _read_package_json(self) -> Result[StrDict, WorkflowError]:
        path = self._workspace.package_json
        try:
            obj: object = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            return Err(WorkflowError(kind="io_failed", message=f"failed to read {path}: {e}"))
        data = as_str_dict(obj)
        if data is None:
            return Err(WorkflowError(kind="io_failed", message=f"{path} must contain a JSON object"))
        return Ok(data)

    def _write_package_json(self, pkg: StrDict) -> Result[None, WorkflowError]:
        path = self._workspace.package_json
        try:
            atomic_write_text(path, json.dumps(pkg, indent=2) + "\n")
        except OSError as e:
            return Err(WorkflowError(kind="io_failed", message=f"failed to write {path}: {e}"))
        return Ok(None)
