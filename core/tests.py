# File: core/tests.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

from unittest.mock import Mock, patch

import requests
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.contrib.sessions.backends.db import SessionStore
from django.core.cache import cache
from django.core.exceptions import PermissionDenied
from django.test import TestCase, RequestFactory, override_settings
from django.urls import reverse
from django.utils.safestring import mark_safe

from core.chrome import AdminBar, AdminMenu, Dashboard, get_admin_menu, refresh_admin_menu
from core.models import Option
from core.nonces import create_nonce, require_nonce, verify_nonce
from core.options import OptionStore, SettingsRegistry, get_settings_registry, refresh_settings_registry
from core.signals import admin_init, admin_menu
from core.updates import FAILED_CACHE_KEY, UpdateCheckError, get_core_updates
from core.utils.authz import ADMINISTRATOR_GROUP, is_administrator, user_can
from core.utils.text import sanitize_text_field

User = get_user_model()


class OptionStoreTestCase(TestCase):

    def setUp(self):
        self.store = OptionStore()

    def test_unset_key_returns_explicit_default(self):
        self.assertEqual(self.store.get('missing_option', 'fallback'), 'fallback')

    def test_unset_key_returns_registered_default(self):
        """version_info_show_footer is registered by the versioninfo app with default True."""
        self.assertIs(self.store.get('version_info_show_footer'), True)
        self.assertIs(self.store.get('version_info_show_admin_bar'), False)

    def test_unregistered_key_without_default_is_none(self):
        self.assertIsNone(self.store.get('nobody_registered_this'))

    def test_set_creates_and_updates(self):
        self.assertTrue(self.store.set('some_flag', True))
        self.assertIs(self.store.get('some_flag', False), True)

        self.assertTrue(self.store.set('some_flag', False))
        self.assertIs(self.store.get('some_flag', True), False)
        self.assertEqual(Option.objects.filter(name='some_flag').count(), 1)

    def test_set_unchanged_value_is_noop(self):
        self.store.set('some_flag', True)
        option = Option.objects.get(name='some_flag')
        history_before = option.history.count()

        self.assertFalse(self.store.set('some_flag', True))
        self.assertEqual(option.history.count(), history_before)

    def test_changes_are_recorded_in_history(self):
        self.store.set('some_flag', True)
        self.store.set('some_flag', False)
        option = Option.objects.get(name='some_flag')
        self.assertEqual(option.history.count(), 2)
        self.assertEqual(option.history.first().value, False)


class SettingsRegistryTestCase(TestCase):

    def test_group_lookup(self):
        registry = SettingsRegistry()
        registry.register_setting('grp', 'a', default=1)
        registry.register_setting('grp', 'b', sanitize_callback=int)
        registry.register_setting('other', 'c')

        self.assertEqual([s.name for s in registry.group('grp')], ['a', 'b'])
        self.assertEqual(registry.get('b').sanitize('7'), 7)
        self.assertEqual(registry.get('a').sanitize('raw'), 'raw')
        self.assertIn('c', registry)
        self.assertEqual(registry.group('nope'), [])

    def test_admin_init_receivers_populate_registry(self):
        registry = get_settings_registry()
        names = {s.name for s in registry.group('version_info_settings_group')}
        self.assertEqual(names, {
            'version_info_show_footer',
            'version_info_show_admin_bar',
            'version_info_show_dashboard_widget',
        })

    def test_refresh_picks_up_late_receivers(self):
        def add_setting(sender, registry, **kwargs):
            registry.register_setting('late_group', 'late_flag', default=False)

        self.assertNotIn('late_flag', get_settings_registry())
        admin_init.connect(add_setting, dispatch_uid='test_late_setting')
        self.addCleanup(refresh_settings_registry)
        self.addCleanup(admin_init.disconnect, dispatch_uid='test_late_setting')

        self.assertNotIn('late_flag', get_settings_registry())
        refresh_settings_registry()
        self.assertIn('late_flag', get_settings_registry())
        self.assertIn('version_info_show_footer', get_settings_registry())


class SanitizeTextFieldTestCase(TestCase):

    def test_strips_tags_and_whitespace(self):
        self.assertEqual(
            sanitize_text_field("  <b>Apache</b>/2.4.58\n(Unix)\t "),
            "Apache/2.4.58 (Unix)",
        )

    def test_removes_octets_and_dangling_bracket(self):
        self.assertEqual(sanitize_text_field("nginx%0a/1.25 <"), "nginx/1.25")

    def test_none_is_empty(self):
        self.assertEqual(sanitize_text_field(None), "")


class AuthzTestCase(TestCase):

    def setUp(self):
        self.superuser = User.objects.create_superuser(
            username='admin', email='admin@test.com', password='testpass123'
        )
        self.staff = User.objects.create_user(
            username='staff', email='staff@test.com', password='testpass123', is_staff=True
        )

    def test_superuser_is_administrator(self):
        self.assertTrue(is_administrator(self.superuser))
        self.assertTrue(user_can(self.superuser, 'manage_options'))

    def test_staff_is_not_administrator(self):
        self.assertFalse(is_administrator(self.staff))
        self.assertFalse(user_can(self.staff, 'manage_options'))

    def test_acl_declared_group_grants_administrator(self):
        group = Group.objects.create(name=ADMINISTRATOR_GROUP)
        self.staff.groups.add(group)
        self.assertTrue(is_administrator(self.staff))

    def test_undeclared_group_is_ignored(self):
        group = Group.objects.create(name='role:not-in-acl')
        self.staff.groups.add(group)
        self.assertFalse(is_administrator(self.staff))

    def test_inactive_superuser_is_not_administrator(self):
        self.superuser.is_active = False
        self.superuser.save()
        self.assertFalse(is_administrator(self.superuser))

    def test_anonymous_is_not_administrator(self):
        from django.contrib.auth.models import AnonymousUser
        self.assertFalse(is_administrator(AnonymousUser()))
        self.assertFalse(is_administrator(None))


class NonceTestCase(TestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.user = User.objects.create_superuser(
            username='admin', email='admin@test.com', password='testpass123'
        )
        self.session = SessionStore()
        self.session.create()

    def _request(self, data=None, user=None, session=None):
        request = self.factory.post('/admin/options/', data or {})
        request.user = user or self.user
        request.session = session or self.session
        return request

    def test_roundtrip_same_action(self):
        request = self._request()
        nonce = create_nonce(request, 'do_thing')
        self.assertTrue(verify_nonce(request, nonce, 'do_thing'))

    def test_other_action_rejected(self):
        request = self._request()
        nonce = create_nonce(request, 'do_thing')
        self.assertFalse(verify_nonce(request, nonce, 'other_thing'))

    def test_other_session_rejected(self):
        nonce = create_nonce(self._request(), 'do_thing')
        other_session = SessionStore()
        other_session.create()
        self.assertFalse(verify_nonce(self._request(session=other_session), nonce, 'do_thing'))

    def test_other_user_rejected(self):
        nonce = create_nonce(self._request(), 'do_thing')
        other = User.objects.create_superuser(username='other', email='o@test.com', password='testpass123')
        self.assertFalse(verify_nonce(self._request(user=other), nonce, 'do_thing'))

    def test_garbage_and_missing_rejected(self):
        request = self._request()
        self.assertFalse(verify_nonce(request, 'not-a-token', 'do_thing'))
        self.assertFalse(verify_nonce(request, '', 'do_thing'))
        self.assertFalse(verify_nonce(request, None, 'do_thing'))

    @override_settings(NONCE_LIFETIME=-1)
    def test_expired_rejected(self):
        request = self._request()
        nonce = create_nonce(request, 'do_thing')
        self.assertFalse(verify_nonce(request, nonce, 'do_thing'))

    def test_require_nonce_aborts(self):
        with self.assertRaises(PermissionDenied):
            require_nonce(self._request({'token': 'forged'}), 'do_thing', 'token')

    def test_require_nonce_passes(self):
        nonce = create_nonce(self._request(), 'do_thing')
        require_nonce(self._request({'token': nonce}), 'do_thing', 'token')


class CoreUpdatesTestCase(TestCase):

    PAYLOAD = {
        "info": {"version": "5.1"},
        "releases": {
            "4.2": [],
            "5.0": [{"yanked": False}],
            "5.0.1": [{"yanked": True}],
            "5.1": [{"yanked": False}, {"yanked": False}],
            "5.2a1": [{"yanked": False}],
            "not-a-version": [{"yanked": False}],
        },
    }

    def setUp(self):
        cache.clear()

    def _response(self, payload):
        resp = Mock()
        resp.json.return_value = payload
        resp.raise_for_status.return_value = None
        return resp

    @patch('core.updates.requests.get')
    def test_stable_releases_newest_first(self, mock_get):
        mock_get.return_value = self._response(self.PAYLOAD)
        versions = [u.version for u in get_core_updates()]
        self.assertEqual(versions, ["5.1", "5.0", "4.2"])

    @patch('core.updates.requests.get')
    def test_result_is_cached(self, mock_get):
        mock_get.return_value = self._response(self.PAYLOAD)
        get_core_updates()
        get_core_updates()
        self.assertEqual(mock_get.call_count, 1)

    @patch('core.updates.requests.get')
    def test_network_failure_raises(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("boom")
        with self.assertRaises(UpdateCheckError):
            get_core_updates()

    @patch('core.updates.requests.get')
    def test_bad_json_raises(self, mock_get):
        resp = self._response(None)
        resp.json.side_effect = ValueError("no json")
        mock_get.return_value = resp
        with self.assertRaises(UpdateCheckError):
            get_core_updates()

    @patch('core.updates.requests.get')
    def test_releases_not_a_mapping_raises(self, mock_get):
        mock_get.return_value = self._response({"releases": ["5.0", "5.1"]})
        with self.assertRaises(UpdateCheckError):
            get_core_updates()

    @patch('core.updates.requests.get')
    def test_release_files_not_mappings_raises(self, mock_get):
        mock_get.return_value = self._response({"releases": {"5.0": ["wheel"], "5.1": None}})
        with self.assertRaises(UpdateCheckError):
            get_core_updates()

    @patch('core.updates.requests.get')
    def test_repeated_failures_hit_network_once(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        for _ in range(3):
            with self.assertRaises(UpdateCheckError):
                get_core_updates()
        self.assertEqual(mock_get.call_count, 1)

    @patch('core.updates.requests.get')
    def test_check_retried_after_failure_expires(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        with self.assertRaises(UpdateCheckError):
            get_core_updates()

        cache.delete(FAILED_CACHE_KEY)
        mock_get.side_effect = None
        mock_get.return_value = self._response(self.PAYLOAD)
        self.assertEqual(get_core_updates()[0].version, "5.1")
        self.assertEqual(mock_get.call_count, 2)

    @override_settings(CORE_UPDATE_CHECK=False)
    @patch('core.updates.requests.get')
    def test_disabled_check_returns_nothing(self, mock_get):
        self.assertEqual(get_core_updates(), [])
        mock_get.assert_not_called()


class ChromeTestCase(TestCase):

    def test_admin_bar_escapes_plain_titles(self):
        bar = AdminBar()
        bar.add_node(id='a', title='<script>x</script>')
        bar.add_node(id='b', title=mark_safe('<em>ok</em>'), parent='top-secondary')
        self.assertEqual(bar.get_node('a').title, '&lt;script&gt;x&lt;/script&gt;')
        self.assertEqual(bar.get_node('b').title, '<em>ok</em>')
        self.assertEqual([n.id for n in bar.nodes], ['a', 'b'])

        bar.remove_node('a')
        self.assertIsNone(bar.get_node('a'))

    def test_dashboard_widget_render_calls_callback(self):
        dashboard = Dashboard()
        dashboard.add_widget('w', 'Widget', lambda: mark_safe('<ul></ul>'))
        self.assertEqual(dashboard.widgets[0].render(), '<ul></ul>')

    def test_menu_filters_by_capability(self):
        admin = User.objects.create_superuser(username='admin', email='a@test.com', password='testpass123')
        staff = User.objects.create_user(username='staff', password='testpass123', is_staff=True)
        menu = AdminMenu()
        menu.add_options_page('Title', 'Menu', 'manage_options', 'my-page', lambda request: None)

        self.assertEqual([p.slug for p in menu.pages_for(admin)], ['my-page'])
        self.assertEqual(menu.pages_for(staff), [])
        self.assertEqual(menu.get_page('my-page').url, '/admin/options/my-page/')

    def test_refresh_admin_menu_resends_hook(self):
        def add_page(sender, menu, **kwargs):
            menu.add_options_page('Late', 'Late', 'manage_options', 'late-page', lambda request: None)

        self.assertIsNone(get_admin_menu().get_page('late-page'))
        admin_menu.connect(add_page, dispatch_uid='test_late_page')
        self.addCleanup(refresh_admin_menu)
        self.addCleanup(admin_menu.disconnect, dispatch_uid='test_late_page')

        self.assertIsNone(get_admin_menu().get_page('late-page'))
        refresh_admin_menu()
        self.assertIsNotNone(get_admin_menu().get_page('late-page'))
        self.assertIsNotNone(get_admin_menu().get_page('version-info-settings'))


@override_settings(CORE_UPDATE_CHECK=False)
class OptionsEndpointTestCase(TestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.admin = User.objects.create_superuser(
            username='admin', email='admin@test.com', password='testpass123'
        )
        self.staff = User.objects.create_user(
            username='staff', email='staff@test.com', password='testpass123', is_staff=True
        )

    def _nonce_for(self, user, action):
        request = self.factory.post('/')
        request.user = user
        request.session = self.client.session
        return create_nonce(request, action)

    def test_get_not_allowed(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.get(reverse('options_save'))
        self.assertEqual(response.status_code, 405)

    def test_unknown_group_refused(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.post(reverse('options_save'), {
            'option_page': 'bogus_group',
            '_nonce': self._nonce_for(self.admin, 'bogus_group-options'),
        })
        self.assertEqual(response.status_code, 403)

    def test_staff_without_capability_refused(self):
        self.client.login(username='staff', password='testpass123')
        response = self.client.post(reverse('options_save'), {
            'option_page': 'version_info_settings_group',
            '_nonce': self._nonce_for(self.staff, 'version_info_settings_group-options'),
            'version_info_show_admin_bar': '1',
        })
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Option.objects.exists())

    def test_anonymous_redirected_to_login(self):
        response = self.client.post(reverse('options_save'), {'option_page': 'version_info_settings_group'})
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('admin:login'), response['Location'])

    def test_unknown_options_page_404(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.get(reverse('options_page', args=['no-such-page']))
        self.assertEqual(response.status_code, 404)

    def test_save_redirects_to_referer(self):
        self.client.login(username='admin', password='testpass123')
        referer = reverse('options_page', args=['version-info-settings'])
        response = self.client.post(reverse('options_save'), {
            'option_page': 'version_info_settings_group',
            '_nonce': self._nonce_for(self.admin, 'version_info_settings_group-options'),
            '_http_referer': referer,
        })
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response['Location'], f"{referer}?settings-updated=true")

    def test_offsite_referer_falls_back_to_admin_index(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.post(reverse('options_save'), {
            'option_page': 'version_info_settings_group',
            '_nonce': self._nonce_for(self.admin, 'version_info_settings_group-options'),
            '_http_referer': 'https://evil.example.com/',
        })
        self.assertEqual(response['Location'], f"{reverse('admin:index')}?settings-updated=true")
