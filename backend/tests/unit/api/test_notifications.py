"""
Unit Tests for Notifications API Endpoints
"""
import pytest
from httpx import AsyncClient


async def send(client: AsyncClient, headers: dict, **payload) -> dict:
    response = await client.post('/api/notifications', headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()['data']['notification']


class TestNotificationVisibility:
    """Personal, broadcast and admin-only notifications"""

    @pytest.mark.asyncio
    async def test_user_sees_personal_and_broadcast(
        self, client: AsyncClient, test_user, other_user, headers_for, admin_auth_headers
    ):
        await send(client, admin_auth_headers, title='Hello', message='Just for you', userId=test_user.id)
        await send(client, admin_auth_headers, title='Holiday', message='No pickups on Monday')
        await send(client, admin_auth_headers, title='Ops', message='Admins only', isForAdmin=True)
        await send(client, admin_auth_headers, title='Other', message='Not yours', userId=other_user.id)

        response = await client.get('/api/notifications', headers=headers_for(test_user))

        data = response.json()['data']
        assert {n['title'] for n in data['notifications']} == {'Hello', 'Holiday'}
        assert data['unreadCount'] == 2

    @pytest.mark.asyncio
    async def test_admin_sees_admin_notifications(self, client: AsyncClient, admin_auth_headers):
        await send(client, admin_auth_headers, title='Ops', message='Admins only', isForAdmin=True)

        response = await client.get('/api/notifications', headers=admin_auth_headers)

        assert [n['title'] for n in response.json()['data']['notifications']] == ['Ops']

    @pytest.mark.asyncio
    async def test_only_admins_create(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/notifications', headers=auth_headers,
                                     json={'title': 'Spam', 'message': 'Buy now'})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, client: AsyncClient, admin_auth_headers):
        response = await client.post('/api/notifications', headers=admin_auth_headers, json={
            'title': 'Hi', 'message': 'There', 'userId': '00000000-0000-0000-0000-000000000000',
        })

        assert response.status_code == 404


class TestReadReceipts:
    """Read state is tracked per user"""

    @pytest.mark.asyncio
    async def test_broadcast_read_independently(
        self, client: AsyncClient, test_user, other_user, headers_for, admin_auth_headers
    ):
        notification = await send(client, admin_auth_headers, title='Holiday', message='No pickups')

        marked = await client.put(f"/api/notifications/{notification['id']}/read", headers=headers_for(test_user))
        assert marked.status_code == 200
        assert marked.json()['data']['notification']['isRead'] is True

        mine = await client.get('/api/notifications', headers=headers_for(test_user), params={'isRead': 'true'})
        theirs = await client.get('/api/notifications', headers=headers_for(other_user), params={'isRead': 'false'})
        assert len(mine.json()['data']['notifications']) == 1
        assert len(theirs.json()['data']['notifications']) == 1

    @pytest.mark.asyncio
    async def test_cannot_read_someone_elses(
        self, client: AsyncClient, test_user, other_user, headers_for, admin_auth_headers
    ):
        notification = await send(client, admin_auth_headers, title='Hi', message='Private', userId=other_user.id)

        response = await client.put(f"/api/notifications/{notification['id']}/read", headers=headers_for(test_user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client: AsyncClient, test_user, headers_for, admin_auth_headers):
        await send(client, admin_auth_headers, title='One', message='1')
        await send(client, admin_auth_headers, title='Two', message='2', userId=test_user.id)

        first = await client.put('/api/notifications/read-all', headers=headers_for(test_user))
        second = await client.put('/api/notifications/read-all', headers=headers_for(test_user))

        assert first.json()['data']['modifiedCount'] == 2
        assert second.json()['data']['modifiedCount'] == 0


class TestAdminOperations:
    @pytest.mark.asyncio
    async def test_stats_and_delete(self, client: AsyncClient, test_user, headers_for, admin_auth_headers):
        notification = await send(client, admin_auth_headers, title='Warn', message='Storm', type='warning')
        await send(client, admin_auth_headers, title='Ops', message='Admins', isForAdmin=True)
        await client.put(f"/api/notifications/{notification['id']}/read", headers=headers_for(test_user))

        stats = (await client.get('/api/notifications/stats', headers=admin_auth_headers)).json()['data']
        assert stats['total'] == 2
        assert stats['unread'] == 1
        assert stats['byType']['warning'] == 1
        assert stats['adminNotifications'] == 1

        deleted = await client.delete(f"/api/notifications/{notification['id']}", headers=admin_auth_headers)
        assert deleted.status_code == 200
        remaining = await client.get('/api/notifications', headers=headers_for(test_user))
        assert remaining.json()['data']['notifications'] == []

    @pytest.mark.asyncio
    async def test_stats_require_admin(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/notifications/stats', headers=auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_pickup_completion_notifies_owner(
        self, client: AsyncClient, auth_headers, admin_auth_headers, pickup_data
    ):
        created = await client.post('/api/pickups', headers=auth_headers, json=pickup_data())
        pickup_id = created.json()['data']['pickup']['id']

        await client.post(f'/api/pickups/{pickup_id}/complete', headers=admin_auth_headers)

        response = await client.get('/api/notifications', headers=auth_headers)
        notifications = response.json()['data']['notifications']
        assert [n['title'] for n in notifications] == ['Pickup Completed']
        assert notifications[0]['type'] == 'success'
