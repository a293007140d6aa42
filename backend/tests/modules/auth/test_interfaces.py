from modules.auth.interfaces import IAuthSessionManager, IProfileRepository, ISessionStore
from modules.auth.repository import ProfileRepository
from modules.auth.service import AuthSessionManager
from modules.auth.session_store import SupabaseSessionStore


class TestAuthInterfaces:
    def test_manager_implements_interface(self, session_store, profile_repo):
        """AuthSessionManager should satisfy IAuthSessionManager."""
        manager = AuthSessionManager(session_store, profile_repo)
        assert isinstance(manager, IAuthSessionManager)

    def test_fakes_implement_interfaces(self, session_store, profile_repo):
        """The test fakes should stay in sync with the protocols."""
        assert isinstance(session_store, ISessionStore)
        assert isinstance(profile_repo, IProfileRepository)

    def test_store_has_interface_methods(self):
        methods = ["get_current_session", "sign_in_with_password", "sign_up", "sign_out", "subscribe"]
        for method in methods:
            assert callable(getattr(SupabaseSessionStore, method))

    def test_repository_has_interface_methods(self):
        for method in ["get_profile", "insert_profile"]:
            assert callable(getattr(ProfileRepository, method))
