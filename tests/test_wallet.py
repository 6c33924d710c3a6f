import pytest

from p2pool.common import Hash, NetworkType
from p2pool.wallet import ADDRESS_LENGTH, Wallet, is_valid_point, keccak256


@pytest.mark.parametrize(
    "address",
    [
        None,
        "456",
        # Symbol '0' is not from base-58
        "40ccoSmrBTPJd5yf8VYCULh4J5rHQaXP1TeC8Cnqhd5H9Y2cMwkJ9w42euLmMghKtCiQcgZEiGYW1K6Ae4biZ7w1HLSexS6",
        # Invalid checksum
        "49ccoSmrBTPJd5yf8VYCULh4J5rHQaXP1TeC8Cnqhd5H9Y2cMwkJ9w42euLmMghKtCiQcgZEiGYW1K6Ae4biZ7w1HLSexS7",
        # 64-bit overflow
        "49ccoSmrBTPzzzzzzzzzzzh4J5rHQaXP1TeC8Cnqhd5H9Y2cMwkJ9w42euLmMghKtCiQcgZEiGYW1K6Ae4biZ7w1HLSexS6",
        # Subaddress (not supported)
        "8BE7uo9kWR6fFekhGHKJt87pkTzzNj2ikZMNmN7DUJf81y6Zygzbsk1CFzGMbS7fB7E2qr6A6EZfLYgxUfYvdDxEHrMPMA5",
    ],
)
def test_invalid_addresses(address):
    w = Wallet(address)
    assert w.valid() is False
    assert w.network_type == NetworkType.INVALID


VALID = [
    (NetworkType.MAINNET, 18, 0xA345C1C9, "49ccoSmrBTPJd5yf8VYCULh4J5rHQaXP1TeC8Cnqhd5H9Y2cMwkJ9w42euLmMghKtCiQcgZEiGYW1K6Ae4biZ7w1HLSexS6",
     "d2e232e441546a695b27187692d035ef7be5c54692700c9f470dcd706753a833", "06f68970da46f709e2b4d0ffabd0d1f78ea6717786b5766c25c259111f212490"),
    (NetworkType.MAINNET, 18, 0x8C8FB6E6, "45JHuqGBSqUXUyZx95H4C2J5aEL4zFjM3jpTmMTESPXPa3jmtSQWYezHX7r4A2xPQNBGsQupJqmPhRZb2QgBcEWRDQ9ywwR",
     "60fe176eaf3cffb63df130bc25036b661b947900941052fffe6ff4b51fc4f2c5", "9387910b0a2e4f62c32621b77ddbeb3d6c0054e5ed9bc492d87bab1a1eef366d"),
    (NetworkType.MAINNET, 18, 0x0E705A56, "43S5vhReDY4fJs99DBZtFS8JoJVNG17iaAVAARvRT8xzSYZqnJfXfTACLrZUzoBHQKhiJZCWCpqB4Kf3c64CEagdSRXd5D7",
     "2fc2f902659541e50753853ddb96912baf55f26bebe7d338b5c2239c437ddb98", "b814951166253543cfb0e1b8bdea58f366de824fddb8ef6f895fcf631873f6e1"),
    (NetworkType.TESTNET, 53, 0x6F896672, "9x6aEN1yd2WhPMPw89LV5LLK1ZFe6N8xiAm18Ay4q1U4LKMde7MpDdPRN6GiiGCJMVTHuptGGmfj2Qfp2vcKSRSG79HJrQn",
     "821623ac165f07f172c86980254a43737332fd89ca36d33a57dc02d8026d9173", "7c55413e672f8691a9211eac6003109d2fdf224ba72c4d8d82353427a02bc136"),
    (NetworkType.TESTNET, 53, 0x4124092A, "9zsJP6KFF6ZGern5UkR7gyRXHFRTba6jG8JKnfzDySeqEdwPZaD8MNYGkjyADdVpWs7rXgyeu712JdxhX2k7d9SNB4TdRdS",
     "cb366a3b44f6aa5d94e03db06325b6929b9e75dbf19dcf2ba2d14eb2efa53651", "8789afa33dca295e301baef826cec028fa22b831822c1bdcf8a847a43a3bff59"),
    (NetworkType.TESTNET, 53, 0x0AC6459F, "A1SqL5oPjh8Km1At7mao7U1fNjWkzeSwvQ39GimMqvhBF3FUoJhx1zxL2i6XbHzzAXDhKetiwSmYQeVwG6sUgwJuEqPyjWq",
     "da78298fb6eb8f702698bec873bad703f4a51e1377a66d89ba977ca7f43b8e53", "eeb348f70afad971c50aa062f1d1544be64ef9cdc12475e030f2d295305e6e7a"),
    (NetworkType.STAGENET, 24, 0x36E99D1D, "55AJ4jJBhV6JsoqrEsAazTLrJjg9SA1SFReLUoXDudrsA9tdL9i2VkJefEbx3zrFRt6swuibPVySPGNzsNvyshrRNZbSDnD",
     "57e0c2fef80a1d6adfa3189134009076ad0ddc4c4668709355cea98524e9fc36", "b94fafe59d5037e126557665f76cd3232504ebd82500e05bf25801d853d182bf"),
    (NetworkType.STAGENET, 24, 0x16DF3958, "5BQqg4HTWuN3j4NzBHTK31eTaygRXYxWRQW9dTD7qMuJSiVtskraSErXQ24FUBeifiV6NaQPmxLS559vbUT4xYUoF2fiGvH",
     "fcd35a53cef9a1104ae556f01cee0cdff2f18f2f2f6bde8c833d5bd980fe8999", "be2b1142a046bfb5bb21e1f2a49bd1a7f46e1c18b009b218d5962f663938707c"),
    (NetworkType.STAGENET, 24, 0xF17D6524, "53CFYfjzcouW95hQ7AHvqS3GZ2UAAaRLKc1ymmhHATQTZxhtakpYcfjiRVzrRdxVZ5F8p61KSpPEmFu9DVRULRDkK4v1TCU",
     "23fdd143264794ae367083791bb8fd0d8f719b27b7b858d15a2b67d6eddd60c5", "0ebafc1284ab1af7a5ff4ade682bcc54817a319a00eede591344855c420beba0"),
]


@pytest.mark.parametrize("net,prefix,checksum,address,spendkey,viewkey", VALID)
def test_decode(net, prefix, checksum, address, spendkey, viewkey):
    w = Wallet(address)
    assert w.valid()
    assert w.network_type == net
    assert w.prefix == prefix
    assert w.checksum == checksum
    assert str(w.spend_public_key) == spendkey
    assert str(w.view_public_key) == viewkey


@pytest.mark.parametrize("net,prefix,checksum,address,spendkey,viewkey", VALID)
def test_assign_and_encode(net, prefix, checksum, address, spendkey, viewkey):
    w = Wallet(address)
    w2 = Wallet(None)
    assert w2.assign(w.spend_public_key, w.view_public_key, w.network_type) is True

    assert w2.prefix == w.prefix
    assert w2.spend_public_key == w.spend_public_key
    assert w2.view_public_key == w.view_public_key
    assert w2.checksum == w.checksum
    assert w2.network_type == w.network_type

    assert w.encode() == address
    assert w2.encode() == address
    assert len(w.encode()) == ADDRESS_LENGTH
    assert w == w2
    assert hash(w) == hash(w2)


def test_ordering_follows_spend_key():
    wallets = [Wallet(row[3]) for row in VALID]
    ordered = sorted(wallets)
    keys = [w.spend_public_key for w in ordered]
    assert keys == sorted(keys)
    assert not (ordered[0] < ordered[0])


def test_assign_rejects_non_curve_key():
    w = Wallet(VALID[0][3])
    bad = Hash(bytes.fromhex("ed" + "ff" * 30 + "7f"))
    w2 = Wallet(None)
    assert w2.assign(bad, w.view_public_key, NetworkType.MAINNET) is False
    assert w2.valid() is False


def test_keccak256_vectors():
    assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    assert keccak256(b"\xcc").hex() == "eead6dbfc7340a56caedc044696a168870549a6a7f6f56961e84a54bd9970b8a"
    assert keccak256(b"\x41\xfb").hex() == "a8eaceda4d47b3281a795ad9e1ea2122b407baf9aabcb9e18b5717b7873537d2"


def test_is_valid_point():
    # y = p is not canonical
    assert is_valid_point(bytes.fromhex("ed" + "ff" * 30 + "7f")) is False
    # identity point, and the same with the x sign bit set (x = 0 must be positive)
    assert is_valid_point(b"\x01" + bytes(31)) is True
    assert is_valid_point(b"\x01" + bytes(30) + b"\x80") is False
    assert is_valid_point(Hash.from_hex(VALID[0][4])) is True
    assert is_valid_point(b"\x01") is False