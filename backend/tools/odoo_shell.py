import code

from odoo_client import get_odoo_client


def main() -> None:
    client = get_odoo_client()
    uid = client.authenticate()

    banner = (
        f"Odoo shell (uid {uid})\n"
        "Variable 'odoo' is available. Example:\n"
        ">>> odoo.search_read('res.partner', [['email', '=', 'a@b.com']], fields=['name'])\n"
    )
    namespace = {"odoo": client}
    code.interact(banner=banner, local=namespace)


if __name__ == "__main__":
    main()
