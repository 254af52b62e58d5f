"""Network interface configuration through NetworkManager, netplan and ifupdown."""