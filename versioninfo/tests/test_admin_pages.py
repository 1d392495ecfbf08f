import re
from unittest.mock import Mock, patch

import django
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.urls import reverse

from core.models import Option
from core.options import options
from versioninfo.service import (
    NONCE_FIELD,
    OPTION_GROUP,
    SETTINGS_PAGE_SLUG,
    SHOW_ADMIN_BAR,
    SHOW_DASHBOARD_WIDGET,
    SHOW_FOOTER,
)

User = get_user_model()

SERVER = {'SERVER_SOFTWARE': 'TestServer/1.0'}


def hidden_value(html, name):
    match = re.search(r'name="%s" value="([^"]+)"' % re.escape(name), html)
    return match.group(1) if match else None


def checkbox(name, checked):
    return 'id="id_%s" value="1"%s>' % (name, " checked" if checked else "")


@override_settings(CORE_UPDATE_CHECK=False)
class SettingsPageTestCase(TestCase):
    """The settings page and the options endpoint, end to end."""

    def setUp(self):
        self.admin = User.objects.create_superuser(
            username='admin', email='admin@test.com', password='testpass123'
        )
        self.staff = User.objects.create_user(
            username='staff', email='staff@test.com', password='testpass123', is_staff=True
        )
        self.url = reverse('options_page', args=[SETTINGS_PAGE_SLUG])

    def _get_form(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        return response.content.decode()

    def test_form_shows_defaults(self):
        self.client.login(username='admin', password='testpass123')
        html = self._get_form()

        self.assertIn('Version Info Settings', html)
        self.assertIn(f'action="{reverse("options_save")}"', html)
        self.assertEqual(hidden_value(html, 'option_page'), OPTION_GROUP)
        self.assertIsNotNone(hidden_value(html, '_nonce'))
        self.assertIsNotNone(hidden_value(html, NONCE_FIELD))
        self.assertIn('name="csrfmiddlewaretoken"', html)

        self.assertIn(checkbox(SHOW_ADMIN_BAR, False), html)
        self.assertIn(checkbox(SHOW_DASHBOARD_WIDGET, False), html)
        self.assertIn(checkbox(SHOW_FOOTER, True), html)

    def test_checkbox_order(self):
        self.client.login(username='admin', password='testpass123')
        html = self._get_form()
        positions = [html.index(f'id="id_{name}"') for name in (SHOW_ADMIN_BAR, SHOW_DASHBOARD_WIDGET, SHOW_FOOTER)]
        self.assertEqual(positions, sorted(positions))

    def test_round_trip(self):
        self.client.login(username='admin', password='testpass123')
        html = self._get_form()

        response = self.client.post(reverse('options_save'), {
            'option_page': hidden_value(html, 'option_page'),
            'action': 'update',
            '_nonce': hidden_value(html, '_nonce'),
            '_http_referer': self.url,
            SHOW_ADMIN_BAR: '1',
            SHOW_DASHBOARD_WIDGET: '1',
            # footer checkbox left unticked -> absent from POST
        })
        self.assertEqual(response.status_code, 302)

        self.assertIs(options.get(SHOW_ADMIN_BAR), True)
        self.assertIs(options.get(SHOW_DASHBOARD_WIDGET), True)
        self.assertIs(options.get(SHOW_FOOTER), False)

        html = self._get_form()
        self.assertIn(checkbox(SHOW_ADMIN_BAR, True), html)
        self.assertIn(checkbox(SHOW_DASHBOARD_WIDGET, True), html)
        self.assertIn(checkbox(SHOW_FOOTER, False), html)

    def test_save_shows_message(self):
        self.client.login(username='admin', password='testpass123')
        html = self._get_form()
        response = self.client.post(reverse('options_save'), {
            'option_page': OPTION_GROUP,
            '_nonce': hidden_value(html, '_nonce'),
            '_http_referer': self.url,
        }, follow=True)
        self.assertContains(response, 'Settings saved.')

    def test_save_without_token_persists_nothing(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.post(reverse('options_save'), {
            'option_page': OPTION_GROUP,
            SHOW_ADMIN_BAR: '1',
        })
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Option.objects.exists())

    def test_save_with_forged_token_persists_nothing(self):
        self.client.login(username='admin', password='testpass123')
        options.set(SHOW_FOOTER, True)
        response = self.client.post(reverse('options_save'), {
            'option_page': OPTION_GROUP,
            '_nonce': 'forged:token:value',
            SHOW_ADMIN_BAR: '1',
        })
        self.assertEqual(response.status_code, 403)
        self.assertIs(options.get(SHOW_FOOTER), True)
        self.assertFalse(Option.objects.filter(name=SHOW_ADMIN_BAR).exists())

    def test_token_from_another_session_rejected(self):
        self.client.login(username='admin', password='testpass123')
        html = self._get_form()
        token = hidden_value(html, '_nonce')

        self.client.logout()
        self.client.login(username='admin', password='testpass123')
        response = self.client.post(reverse('options_save'), {
            'option_page': OPTION_GROUP,
            '_nonce': token,
            SHOW_ADMIN_BAR: '1',
        })
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Option.objects.exists())

    def test_post_to_page_without_token_aborts(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.post(self.url, {SHOW_ADMIN_BAR: '1'})
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Option.objects.exists())

    def test_post_to_page_with_token_renders_form(self):
        self.client.login(username='admin', password='testpass123')
        html = self._get_form()
        response = self.client.post(self.url, {NONCE_FIELD: hidden_value(html, NONCE_FIELD)})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Version Info Settings')
        self.assertFalse(Option.objects.exists())

    def test_non_administrator_cannot_open_page(self):
        self.client.login(username='staff', password='testpass123')
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 403)

    def test_menu_link_only_for_administrators(self):
        self.client.login(username='admin', password='testpass123')
        response = self.client.get(reverse('admin:index'))
        self.assertContains(response, f'href="{self.url}"')

        self.client.login(username='staff', password='testpass123')
        response = self.client.get(reverse('admin:index'))
        self.assertNotContains(response, f'href="{self.url}"')


@override_settings(CORE_UPDATE_CHECK=False)
class AdminSurfacesTestCase(TestCase):
    """Footer, admin bar and dashboard widget on real admin pages."""

    def setUp(self):
        self.admin = User.objects.create_superuser(
            username='admin', email='admin@test.com', password='testpass123'
        )
        self.staff = User.objects.create_user(
            username='staff', email='staff@test.com', password='testpass123', is_staff=True
        )

    def _index(self):
        response = self.client.get(reverse('admin:index'), **SERVER)
        self.assertEqual(response.status_code, 200)
        return response

    def test_footer_shown_by_default(self):
        self.client.login(username='admin', password='testpass123')
        response = self._index()
        self.assertContains(response, 'id="footer-version"')
        self.assertContains(response, f"Django {django.get_version()}")
        self.assertContains(response, "Web Server TestServer/1.0")
        self.assertContains(response, "SQLite ")

    def test_footer_hidden_when_disabled(self):
        options.set(SHOW_FOOTER, False)
        self.client.login(username='admin', password='testpass123')
        self.assertNotContains(self._index(), 'id="footer-version"')

    def test_footer_hidden_for_non_administrator(self):
        self.client.login(username='staff', password='testpass123')
        self.assertNotContains(self._index(), 'id="footer-version"')

    def test_admin_bar_off_by_default(self):
        self.client.login(username='admin', password='testpass123')
        self.assertNotContains(self._index(), 'id="admin-bar-version_info_admin_bar"')

    def test_admin_bar_when_enabled(self):
        options.set(SHOW_ADMIN_BAR, True)
        self.client.login(username='admin', password='testpass123')
        response = self._index()
        self.assertContains(response, 'id="admin-bar-version_info_admin_bar"')
        self.assertContains(response, 'data-parent="top-secondary"')

    def test_admin_bar_hidden_for_non_administrator(self):
        options.set(SHOW_ADMIN_BAR, True)
        self.client.login(username='staff', password='testpass123')
        self.assertNotContains(self._index(), 'id="admin-bar-version_info_admin_bar"')

    def test_widget_off_by_default(self):
        self.client.login(username='admin', password='testpass123')
        self.assertNotContains(self._index(), 'id="version_info_dashboard_widget"')

    def test_widget_when_enabled(self):
        options.set(SHOW_DASHBOARD_WIDGET, True)
        self.client.login(username='admin', password='testpass123')
        response = self._index()
        self.assertContains(response, 'id="version_info_dashboard_widget"')
        self.assertContains(response, f"<li><strong>Django Version:</strong> {django.get_version()}</li>", html=False)
        self.assertContains(response, "<li><strong>Web Server:</strong> TestServer/1.0</li>", html=False)
        self.assertContains(response, "<strong>SQLite Version:</strong>", html=False)

    def test_widget_hidden_for_non_administrator(self):
        options.set(SHOW_DASHBOARD_WIDGET, True)
        self.client.login(username='staff', password='testpass123')
        self.assertNotContains(self._index(), 'id="version_info_dashboard_widget"')


class FooterUpdateLinkTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.admin = User.objects.create_superuser(
            username='admin', email='admin@test.com', password='testpass123'
        )

    def tearDown(self):
        cache.clear()

    @override_settings(CORE_UPDATE_CHECK=True, CORE_UPDATE_PAGE_URL='/admin/updates/')
    @patch('core.updates.requests.get')
    def test_footer_links_newest_release(self, mock_get):
        resp = Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = {"releases": {"999.0": [{"yanked": False}], "1.0": []}}
        mock_get.return_value = resp

        self.client.login(username='admin', password='testpass123')
        response = self.client.get(reverse('admin:index'))
        self.assertContains(response, '(<a href="/admin/updates/">Get Version 999.0</a>)', html=False)

    @override_settings(CORE_UPDATE_CHECK=True)
    @patch('core.updates.requests.get')
    def test_footer_survives_update_failure(self, mock_get):
        import requests
        mock_get.side_effect = requests.Timeout("slow")

        self.client.login(username='admin', password='testpass123')
        response = self.client.get(reverse('admin:index'))
        self.assertContains(response, 'id="footer-version"')
        self.assertNotContains(response, 'Get Version')

        # the failed check is not repeated on the next page
        self.client.get(reverse('admin:index'))
        self.assertEqual(mock_get.call_count, 1)

    @override_settings(CORE_UPDATE_CHECK=True)
    @patch('core.updates.requests.get')
    def test_footer_survives_malformed_release_list(self, mock_get):
        resp = Mock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = {"releases": ["5.0", "5.1"]}
        mock_get.return_value = resp

        self.client.login(username='admin', password='testpass123')
        response = self.client.get(reverse('admin:index'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'id="footer-version"')
        self.assertNotContains(response, 'Get Version')
